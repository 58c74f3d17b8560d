"""Knowledge providers: the compiled report catalog of each business domain.

Covers:
- Cover (Verträge) - contract data from LU_ALLE
- Schaden (Schäden) - claims data from LU_SVA
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum

from .columns import ColumnSpec
from .templates import ReportTemplate


class ContextType(str, Enum):
    """Domain / report family a request resolves to."""
    COVER = "cover"
    SCHADEN = "schaden"
    UNKNOWN = "unknown"


class KnowledgeProvider(ABC):
    """Supplies the report templates of one business domain."""

    context: ContextType = ContextType.UNKNOWN

    @abstractmethod
    def report_templates(self) -> list[ReportTemplate]:
        """Templates in declaration order."""


# =============================================================================
# COVER (Verträge)
# =============================================================================

_SB_SUBSELECT = "(SELECT SB.LU_SB_VOR + ' ' + SB.LU_SB_NAM FROM SACHBEA SB WHERE LAL.{column} = SB.LU_SB_KURZ)"

COVER_COLUMNS: dict[str, ColumnSpec] = {
    # Identifiers & numbers
    "vsn": ColumnSpec("LAL.LU_VSN", "VSN", keywords=("vsn", "versicherungsschein", "policenr")),
    "vsn_makler": ColumnSpec("LAL.LU_VSN_Makler", "VSN Makler", keywords=("vsn makler", "makler-vsn", "policenr makler")),
    "vsn_vr": ColumnSpec("LAL.LU_VSN_VR", "VSN Versicherer", keywords=("vsn vr", "vsn versicherer", "policenr vr")),
    "makler_nr": ColumnSpec("LAL.LU_VMT", "Makler-Nr", keywords=("makler-nr", "makler nr", "makler id", "makler-id", "vmt")),
    "altmakler_nr": ColumnSpec("LAL.LU_VMT2", "Altmakler-Nr", keywords=("altmakler", "vmt2")),
    "gesellschaft_nr": ColumnSpec("LAL.LU_GES", "Ges. Nr", keywords=("ges nr", "gesellschaftsnummer")),
    "vorgang_id": ColumnSpec("LAL.LU_VORGANG_ID", "Vorgang ID", keywords=("vorgang id", "vorgangsnummer", "vorgang")),
    "risiko_id": ColumnSpec("LAL.LU_RIS_ID", "Risiko ID", keywords=("risiko id",)),

    # Partner & address
    "partner_typ": ColumnSpec("LUM.LU_TYP", "Partner-Typ", keywords=("partnertyp", "partner-typ")),
    "firma": ColumnSpec("LUM.LU_NAM", "Firma/Name", keywords=("firma", "name", "kunde")),
    "name2": ColumnSpec("LUM.LU_NA2", "Namenszusatz 1", keywords=("name2", "namenszusatz 1")),
    "name3": ColumnSpec("LUM.LU_NA3", "Namenszusatz 2", keywords=("name3", "namenszusatz 2")),
    "vorname": ColumnSpec("LUM.LU_VOR", "Vorname", keywords=("vorname",)),
    "strasse": ColumnSpec("LUM.LU_STRASSE", "Strasse", keywords=("strasse", "straße", "adresse")),
    "hausnummer": ColumnSpec("LUM.LU_STRASSE_NR", "Hausnummer", keywords=("hausnummer", "str nr")),
    "plz": ColumnSpec("LUM.LU_PLZ", "PLZ", keywords=("plz", "postleitzahl")),
    "ort": ColumnSpec("LUM.LU_ORT", "Ort", keywords=("ort", "stadt")),
    "land": ColumnSpec("V05.LU_LANDNAME", "Land", keywords=("land", "landname")),
    "land_code": ColumnSpec("LUM.LU_NAT", "Land Code", keywords=("land code", "landcode", "nat")),
    "makler_name": ColumnSpec("MAK.LU_NAM", "Makler Name", keywords=("makler name", "makler", "vermittler")),

    # Contract details
    "beginn": ColumnSpec("LAL.LU_BEG", "Beginn", keywords=("beginn", "anfang", "vertragsbeginn")),
    "ablauf": ColumnSpec("LAL.LU_ABL", "Ablauf", keywords=("ablauf", "ende", "vertragsende")),
    "laufzeit": ColumnSpec("LAL.LU_LFZ", "Laufzeit in Jahren", keywords=("laufzeit", "lfz"), numeric=True),
    "vertragsart": ColumnSpec("LAL.LU_ART_Text", "Vertragsart", keywords=("vertragsart", "art")),
    "status": ColumnSpec("LAL.LU_STA", "Status", keywords=("status",)),
    "vertragsstatus": ColumnSpec("MAO.TAB_VALUE", "Vertragsstatus", keywords=("vertragsstatus",)),
    "vertragsstand": ColumnSpec("MAS.TAB_VALUE", "Vertragsstand", keywords=("vertragsstand", "stand")),
    "beteiligungsform": ColumnSpec("MAB.TAB_VALUE", "Beteiligungsform", keywords=("beteiligungsform", "beteiligung")),
    "risiko": ColumnSpec("LAL.LU_RIS", "Risiko", keywords=("risiko",)),
    "baustein_typ": ColumnSpec("MAC.TAB_VALUE", "Baustein Typ", keywords=("baustein", "bausteintyp")),
    "gesellschaft_name": ColumnSpec("LAL.LU_GES_Text", "Ges. Name", keywords=("gesellschaft", "ges name")),

    # Versioning
    "hauptfaelligkeit": ColumnSpec("LAL.LU_HFL", "Hauptfälligkeit", keywords=("hauptfälligkeit", "hauptfall")),
    "faelligkeit_von": ColumnSpec("LAL.LU_FLG", "Fälligkeit von", keywords=("fälligkeit von", "version von")),
    "faelligkeit_bis": ColumnSpec("LAL.LU_FLZ", "Fälligkeit bis", keywords=("fälligkeit bis", "version bis")),
    "version_status": ColumnSpec("LAL.LU_STATUS", "Version Status", keywords=("version status", "v-status")),

    # Clerks (Sachbearbeiter), resolved through correlated subselects
    "sb_vertrag": ColumnSpec(_SB_SUBSELECT.format(column="LU_SACHBEA_VT"), "SB Vertrag", keywords=("sb vertrag", "sb vertr")),
    "sb_schaden": ColumnSpec(_SB_SUBSELECT.format(column="LU_SACHBEA_SC"), "SB Schaden", keywords=("sb schaden", "sb scha")),
    "sb_rechnung": ColumnSpec(_SB_SUBSELECT.format(column="LU_SACHBEA_RG"), "SB Rechnung", keywords=("sb rechnung", "rechnung")),
    "sb_gl": ColumnSpec(_SB_SUBSELECT.format(column="LU_SACHBEA_GL"), "SB GL/Prokurist", keywords=("sb gl", "prokurist")),
    "sb_buha": ColumnSpec(_SB_SUBSELECT.format(column="LU_SACHBEA_BUH"), "SB BuHa", keywords=("sb buha", "buchhaltung")),
}

COVER_REPORT = ReportTemplate(
    name="Dynamischer Cover-Bericht",
    main_keywords=("cover", "covers", "vertrag", "verträge", "verträgen", "vertrages", "police", "policen"),
    columns=COVER_COLUMNS,
    skeleton="""
SELECT
    {COLUMNS}
FROM LU_ALLE AS LAL
    INNER JOIN LU_MASKEP AS LUM ON LAL.PPointer = LUM.PPointer
    INNER JOIN VIASS005 AS V05 ON LUM.LU_NAT = V05.LU_INTKZ
    INNER JOIN MAP_ALLE_STA AS MAS ON LAL.LU_STA = MAS.TAB_ID
    INNER JOIN MAP_ALLE_COVERRIS AS MAC ON LAL.LU_BAUST_RIS = MAC.TAB_ID
    INNER JOIN MAKLERV AS MAK ON LAL.LU_VMT = MAK.LU_VMTNR
    INNER JOIN MAP_ALLE_BETSTAT AS MAB ON LAL.LU_BET_STAT = MAB.TAB_ID
    INNER JOIN MAP_ALLE_OPZ AS MAO ON LAL.LU_OPZ = MAO.TAB_ID
WHERE LAL.Sparte LIKE '%COVER' AND {CONDITIONS}
""",
)


class CoverKnowledgeProvider(KnowledgeProvider):
    """Contract ("Cover") reports."""

    context = ContextType.COVER

    def report_templates(self) -> list[ReportTemplate]:
        return [COVER_REPORT]


# =============================================================================
# SCHADEN (Schäden)
# =============================================================================

def _party_flag(column: str) -> str:
    """'Nein' when the party reference is empty, else the reference itself."""
    return f"(CASE WHEN LS.{column} IS NULL OR RTRIM(LTRIM(LS.{column})) = '' THEN 'Nein' ELSE LS.{column} END)"


SCHADEN_COLUMNS: dict[str, ColumnSpec] = {
    # Identifiers & numbers
    "vsn": ColumnSpec("LU_VSN", "VS-Nr", "LS", ("vsn", "vs-nr", "versicherungsschein")),
    "schaden_nr": ColumnSpec("LU_SNR", "Schaden-Nr", "LS", ("schaden-nr", "schadennummer", "snr", "cs-nummer")),
    "makler_schaden_nr": ColumnSpec("LU_SNR_MAKLER", "Makler-Schaden-Nr", "LS", ("makler schaden-nr", "makler-snr")),
    "vorgang_id": ColumnSpec("LU_VORGANG_ID", "Vorgang-ID", "LS", ("vorgang-id", "vorgangsnummer", "vorgang")),
    "makler_id": ColumnSpec("LU_VMT", "Makler-ID", "LS", ("makler-id", "makler", "vmt", "vermittler")),
    "gesellschaft_nr": ColumnSpec("LU_GES", "Gesellschafts-Nr", "LS", ("gesellschaft-nr", "ges-nr")),
    "gesellschaft_name": ColumnSpec("LU_GES_Text", "Gesellschaft", "LS", ("gesellschaft", "gesellschaftsname")),

    # Dates
    "transport_beginn": ColumnSpec("LU_STRABEG_DATUM", "Transportbeginn", "LS", ("transportbeginn", "beginn transport")),
    "schadentag": ColumnSpec("LU_SDA", "Schadentag", "LS", ("schadentag", "schadendatum", "sda")),
    "anlage_datum": ColumnSpec("LU_SANL_DATUM", "Anlagedatum", "LS", ("anlagedatum", "erstellt am", "angelegt am")),
    "melde_datum": ColumnSpec("LU_SMELD_DATUM", "Meldedatum", "LS", ("meldedatum",)),
    "erledigt_datum": ColumnSpec("LU_ERLEDIGT", "Erledigt am", "LS", ("erledigt", "erledigt am", "geschlossen am")),
    "verjaehrung_datum": ColumnSpec("LU_VERJ_DATUM", "Verjährung", "LS", ("verjährung",)),

    # Status, amounts & currency
    "status": ColumnSpec("LU_SVSTATUS", "Bearbeitungsstatus", "LS", ("status", "bearbeitungsstatus", "schadenstatus")),
    "sachbearbeiter": ColumnSpec("LU_SACHBEA_SC", "Sachbearbeiter", "LS", ("sachbearbeiter", "sb", "bearbeiter")),
    "sparte": ColumnSpec("LU_SPARTENNAME", "Sparte", "LS", ("sparte", "spartenname")),
    "waehrung": ColumnSpec("LU_WAE", "Währung", "LS", ("währung", "wae")),
    "restreserve": ColumnSpec("LU_RESTRESERVE", "Restreserve", "LS", ("restreserve",), numeric=True),
    "schadensumme": ColumnSpec("LU_SSU", "Schadensumme", "LS", ("schadensumme", "ssu"), numeric=True),
    "schaden_offen": ColumnSpec("LU_SSO", "Schaden Offen", "LS", ("schaden offen", "sso"), numeric=True),
    "reserve": ColumnSpec("LU_RESERVE", "Reserve", "LS", ("reserve",), numeric=True),
    "cs_anteil": ColumnSpec("LU_ANTEIL_CS", "CS-Anteil", "LS", ("cs-anteil", "anteil cs"), numeric=True),

    # Transport & goods
    "transportweg_start": ColumnSpec("LU_WR_TRANSWEG", "Transportweg Start", "LS", ("transportweg start", "abgangsort")),
    "transportweg_ziel": ColumnSpec("LU_WR_TRANSWEG3", "Transportweg Ziel", "LS", ("transportweg ziel", "bestimmungsort", "zielort")),
    "warenbezeichnung": ColumnSpec("LU_WR_WAREBEZ", "Warenbezeichnung", "LS", ("ware", "warenbezeichnung")),
    "schiffsname": ColumnSpec("LU_WR_SCHIFFN", "Schiffsname", "LS", ("schiff", "schiffsname")),
    "frachtbrief": ColumnSpec("LU_WR_BLFR", "Frachtbrief-Nr", "LS", ("frachtbrief", "b/l-nr", "bl-nr")),
    "container_nr": ColumnSpec("LU_WR_CONTNR", "Container-Nr", "LS", ("container", "container-nr")),

    # Parties
    "subunternehmer": ColumnSpec(_party_flag("LU_SAST_PNR"), "Subunternehmer", keywords=("subunternehmer", "sast")),
    "verursacher": ColumnSpec(_party_flag("LU_VURS_PNR"), "Verursacher", keywords=("verursacher", "vurs")),
    "anspruchsteller": ColumnSpec(_party_flag("LU_AST_PNR"), "Anspruchsteller", keywords=("anspruchsteller", "ast")),
    "geschaedigter": ColumnSpec(_party_flag("LU_GESCH_PNR"), "Geschädigter", keywords=("geschädigter", "gesch")),
    "surveyor": ColumnSpec("LS.LU_SURV_NAM_PNR", "Surveyor", "LS", ("surveyor", "gutachter", "besichtiger")),
}

SCHADEN_REPORT = ReportTemplate(
    name="Dynamischer Schaden-Bericht",
    main_keywords=("schaden", "schäden", "schadens", "schadenfall", "schadenfälle", "schadensfälle", "sva"),
    columns=SCHADEN_COLUMNS,
    skeleton="SELECT {COLUMNS} FROM LU_SVA AS LS WHERE LS.Sparte = 'SVA' AND {CONDITIONS}",
    default_order=("vsn", "schaden_nr"),
)


class SchadenKnowledgeProvider(KnowledgeProvider):
    """Claims ("Schaden") reports."""

    context = ContextType.SCHADEN

    def report_templates(self) -> list[ReportTemplate]:
        return [SCHADEN_REPORT]
