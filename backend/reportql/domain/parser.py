"""Extraction of a German report request into a QueryIR.

The parser works on tokens and a keyword index built from the expert's
templates. It runs in three passes:

1. sort block ("sortiert nach VSN absteigend, Firma")
2. row limit ("die ersten 50", "limit 100")
3. left-to-right scan of field mentions with their operator/value context

Domain specific adjustments (field redirects, predicate expansion) are
delegated to a FieldRules instance, usually the domain expert itself.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
import re
from typing import Optional, Sequence, Union

from ..core.exceptions import MalformedValueError, UnresolvedFieldError
from ..knowledge.columns import ColumnSpec, fold_text
from ..knowledge.providers import ContextType
from ..knowledge.templates import ReportTemplate
from .base import (
    Direction,
    FilterGroup,
    LogicMode,
    Op,
    Predicate,
    Projection,
    QueryIR,
    Sort,
    ValueRange,
)
from .matcher import KeywordIndex, KeywordMatch, Token, TokenKind, tokenize
from .params import (
    has_wildcard,
    is_currency_word,
    looks_like_date,
    parse_date,
    parse_limit,
    parse_number,
    to_like_pattern,
)

logger = logging.getLogger(__name__)

Node = Union[Predicate, FilterGroup]

# =============================================================================
# VOCABULARY (folded forms)
# =============================================================================

SORT_MARKERS = [
    ("sortiert", "nach"),
    ("sortiere", "nach"),
    ("sortieren", "nach"),
    ("geordnet", "nach"),
    ("order", "by"),
    ("sort", "by"),
]
DESC_WORDS = {"absteigend", "desc", "abwaerts"}
ASC_WORDS = {"aufsteigend", "asc", "aufwaerts"}

LIMIT_MARKERS = [
    ("die", "ersten"),
    ("limit",),
    ("top",),
    ("ersten",),
    ("erste",),
    ("maximal",),
]
# Right after a field these read as a comparison, not as a row limit
COMPARISON_LIMIT_WORDS = {"maximal"}

FIELD_LIST_MARKERS = [
    ("mit", "den", "feldern"),
    ("mit", "der", "feldern"),
    ("mit", "den", "spalten"),
    ("mit", "feldern"),
    ("mit", "spalten"),
    ("und", "zwar"),
    ("felder",),
    ("feldern",),
    ("spalten",),
]

ORDER_START = {"zuerst", "first"}
ORDER_NEXT = {"dann", "danach", "then"}

EXCLUDE_MARKERS = {"ausser", "ohne", "except", "exklusive", "ausgenommen"}
NOT_WORDS = {"nicht", "not"}
NULL_MARKERS = {"kein", "keine", "keinen", "keiner", "keinem"}
EMPTY_WORDS = {"leer", "fehlt", "fehlend", "null"}
PRESENT_WORDS = {"vorhanden", "gesetzt", "gefuellt"}
ARTICLES = {"dem", "den", "der", "die", "das", "zum", "zur"}

OPERATOR_PHRASES: list[tuple[tuple[str, ...], Op]] = [
    (("groesser", "gleich"), Op.GREATER_OR_EQUAL),
    (("kleiner", "gleich"), Op.LESS_OR_EQUAL),
    (("groesser", "als"), Op.GREATER_THAN),
    (("mehr", "als"), Op.GREATER_THAN),
    (("kleiner", "als"), Op.LESS_THAN),
    (("weniger", "als"), Op.LESS_THAN),
    (("gleich",), Op.EQUALS),
    (("ungleich",), Op.NOT_EQUALS),
    (("groesser",), Op.GREATER_THAN),
    (("kleiner",), Op.LESS_THAN),
    (("ueber",), Op.GREATER_THAN),
    (("unter",), Op.LESS_THAN),
    (("ab",), Op.GREATER_OR_EQUAL),
    (("nach",), Op.GREATER_OR_EQUAL),
    (("seit",), Op.GREATER_OR_EQUAL),
    (("mindestens",), Op.GREATER_OR_EQUAL),
    (("bis",), Op.LESS_OR_EQUAL),
    (("vor",), Op.LESS_OR_EQUAL),
    (("hoechstens",), Op.LESS_OR_EQUAL),
    (("maximal",), Op.LESS_OR_EQUAL),
    (("wie",), Op.CONTAINS),
    (("enthaelt",), Op.CONTAINS),
]

SYMBOL_OPERATORS = {
    "=": Op.EQUALS,
    "!=": Op.NOT_EQUALS,
    "<>": Op.NOT_EQUALS,
    ">": Op.GREATER_THAN,
    "<": Op.LESS_THAN,
    ">=": Op.GREATER_OR_EQUAL,
    "<=": Op.LESS_OR_EQUAL,
}

OPERATOR_WORDS = {word for phrase, _ in OPERATOR_PHRASES for word in phrase} | {"zwischen", "in", "ist", "sind"}

STOPWORDS = {
    "zeige", "zeig", "zeigen", "liste", "auflisten", "anzeigen", "gib", "mir", "uns", "bitte", "mal",
    "alle", "aller", "allen", "alles", "ein", "eine", "einen", "einem", "einer",
    "die", "der", "das", "den", "dem", "des",
    "mit", "fuer", "von", "vom", "aus", "bei", "im", "am", "an", "auf", "zu", "zum", "zur",
    "wo", "wobei", "wenn", "deren", "dessen", "welche", "welcher", "welches",
    "und", "oder", "sowie", "nur", "auch", "noch", "hat", "haben", "ist", "sind", "in",
    "show", "me", "all", "with", "where", "and", "or", "list", "the",
    "zwar", "felder", "feldern", "spalten", "sortiert", "limit", "top",
} | ORDER_START | ORDER_NEXT | EXCLUDE_MARKERS | NOT_WORDS | NULL_MARKERS

_HAS_DIGIT = re.compile(r"\d")


class FieldRules:
    """Domain hooks applied while extracting predicates."""

    def redirect_field(self, alias: str, value: Token, template: ReportTemplate) -> str:
        """Choose a different column for ``alias`` based on its first value."""
        return alias

    def expand_predicate(self, predicate: Predicate, template: ReportTemplate) -> Node:
        """Replace a predicate by an equivalent node, e.g. an OR over two columns."""
        return predicate


@dataclass
class _Condition:
    node: Node
    joined_by_or: bool


def _negated_op(op: Op) -> Optional[Op]:
    return {
        Op.EQUALS: Op.NOT_EQUALS,
        Op.NOT_EQUALS: Op.EQUALS,
        Op.IS_NULL: Op.IS_NOT_NULL,
        Op.IS_NOT_NULL: Op.IS_NULL,
    }.get(op)


class RequestParser:
    """Parses one request against one chosen template."""

    def __init__(
        self,
        template: ReportTemplate,
        index: Optional[KeywordIndex] = None,
        rules: Optional[FieldRules] = None,
        context: ContextType = ContextType.UNKNOWN,
    ):
        self.template = template
        self.index = index or KeywordIndex([template])
        self.rules = rules or FieldRules()
        self.context = context

    # -------------------------------------------------------------------------
    # Entry point
    # -------------------------------------------------------------------------

    def parse(self, text: str) -> QueryIR:
        tokens = tokenize(text)
        ir = QueryIR(context=self.context, template=self.template.name)

        tokens = self._extract_sort(tokens, ir)
        tokens = self._extract_limit(tokens, ir)
        self._scan(tokens, ir)

        logger.debug(
            f"Parsed IR for '{self.template.name}': {len(ir.projections)} projection(s), "
            f"{len(ir.main_group.fields())} filter field(s), {len(ir.sorts)} sort(s), limit={ir.limit}"
        )
        return ir

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    @staticmethod
    def _key(tokens: Sequence[Token], i: int) -> str:
        if 0 <= i < len(tokens) and tokens[i].kind == TokenKind.WORD:
            return tokens[i].key
        return ""

    @staticmethod
    def _match_phrase(tokens: Sequence[Token], i: int, phrases: Sequence[tuple[str, ...]]) -> int:
        """End index of the first phrase found at ``i``, or -1."""
        for phrase in phrases:
            end = i + len(phrase)
            if end > len(tokens):
                continue
            if all(
                tokens[i + n].kind == TokenKind.WORD and tokens[i + n].key == word
                for n, word in enumerate(phrase)
            ):
                return end
        return -1

    def _field_at(self, tokens: Sequence[Token], i: int) -> Optional[KeywordMatch]:
        """Column keyword match at ``i`` (main keywords excluded)."""
        match = self.index.match_at(tokens, i)
        if match is None or all(entry.is_main for entry in match.entries):
            return None
        return match

    def _resolve(self, tokens: Sequence[Token], match: KeywordMatch) -> str:
        aliases = match.aliases_for(self.template)
        if aliases:
            return aliases[0]
        phrase = " ".join(t.raw for t in tokens[match.start:match.end])
        raise UnresolvedFieldError(
            f"Das Feld '{phrase}' gibt es im Bericht '{self.template.name}' nicht",
            details={"field": phrase, "report": self.template.name},
        )

    def _unknown_field(self, token: Token) -> UnresolvedFieldError:
        return UnresolvedFieldError(
            f"Unbekanntes Feld '{token.raw}'",
            details={
                "field": token.raw,
                "report": self.template.name,
                "available": self.template.aliases(),
            },
        )

    def _column(self, alias: str) -> ColumnSpec:
        column = self.template.column(alias)
        if column is None:
            raise UnresolvedFieldError(
                f"Das Feld '{alias}' gibt es im Bericht '{self.template.name}' nicht",
                details={"field": alias, "report": self.template.name},
            )
        return column

    def _is_plain_word(self, tokens: Sequence[Token], i: int) -> bool:
        """A word that can be part of a text value."""
        if not 0 <= i < len(tokens) or tokens[i].kind != TokenKind.WORD:
            return False
        key = tokens[i].key
        if key in STOPWORDS or key in OPERATOR_WORDS or key in EMPTY_WORDS or key in PRESENT_WORDS:
            return False
        if key in DESC_WORDS or key in ASC_WORDS or is_currency_word(key):
            return False
        return self.index.match_at(tokens, i) is None

    def _has_condition(self, tokens: Sequence[Token], k: int) -> bool:
        """Whether operator or value context starts at ``k``."""
        if k >= len(tokens):
            return False
        if tokens[k].kind in (TokenKind.NUMBER, TokenKind.DATE, TokenKind.QUOTED, TokenKind.OPERATOR):
            return True
        key = self._key(tokens, k)
        if key in ("ist", "sind", "in", "zwischen") or key in NOT_WORDS:
            return True
        if key in EMPTY_WORDS or key in PRESENT_WORDS:
            return True
        if self._match_phrase(tokens, k, [phrase for phrase, _ in OPERATOR_PHRASES]) >= 0:
            return True
        return self._is_plain_word(tokens, k)

    def _follows_field(self, tokens: Sequence[Token], i: int) -> bool:
        """Whether a column keyword (optionally plus "ist") ends right before ``i``."""
        if self._key(tokens, i - 1) in ("ist", "sind"):
            i -= 1
        for start in range(i):
            match = self._field_at(tokens, start)
            if match is not None and match.end == i:
                return True
        return False

    # -------------------------------------------------------------------------
    # Pass 1: sort block
    # -------------------------------------------------------------------------

    def _extract_sort(self, tokens: list[Token], ir: QueryIR) -> list[Token]:
        for start in range(len(tokens)):
            j = self._match_phrase(tokens, start, SORT_MARKERS)
            if j >= 0:
                break
        else:
            return tokens

        while j < len(tokens):
            while self._key(tokens, j) in ARTICLES:
                j += 1
            if j >= len(tokens):
                break
            match = self._field_at(tokens, j)
            if match is None:
                token = tokens[j]
                if token.kind == TokenKind.WORD and token.key not in STOPWORDS and self.index.match_at(tokens, j) is None:
                    raise self._unknown_field(token)
                break

            alias = self._resolve(tokens, match)
            j = match.end
            direction = Direction.ASC
            if self._key(tokens, j) in DESC_WORDS:
                direction = Direction.DESC
                j += 1
            elif self._key(tokens, j) in ASC_WORDS:
                j += 1
            if self._key(tokens, j) not in COMPARISON_LIMIT_WORDS and self._has_condition(tokens, j):
                found = tokens[j].raw
                raise MalformedValueError(
                    f"Nach dem Sortierfeld '{alias}' ist kein Wert erlaubt (gefunden: '{found}')",
                    details={"field": alias, "value": found},
                )
            ir.add_sort(Sort(alias, direction))

            # Continue only over a separator
            sep = j
            while sep < len(tokens) and (tokens[sep].kind == TokenKind.COMMA or self._key(tokens, sep) in ("und", "dann")):
                sep += 1
            if sep == j or sep >= len(tokens):
                break
            nxt = tokens[sep]
            following = self._field_at(tokens, sep)
            if following is None:
                if nxt.kind == TokenKind.WORD and nxt.key not in STOPWORDS and nxt.key not in ("limit", "top") \
                        and self.index.match_at(tokens, sep) is None:
                    raise self._unknown_field(nxt)
                break
            # A field with its own condition starts a filter, not another sort key
            if self._has_condition(tokens, following.end):
                break
            j = sep

        logger.debug(f"Sort block: {[(s.field, s.direction.value) for s in ir.sorts]}")
        return tokens[:start] + tokens[j:]

    # -------------------------------------------------------------------------
    # Pass 2: row limit
    # -------------------------------------------------------------------------

    def _extract_limit(self, tokens: list[Token], ir: QueryIR) -> list[Token]:
        for start in range(len(tokens)):
            end = self._match_phrase(tokens, start, LIMIT_MARKERS)
            if end < 0:
                continue
            if tokens[start].key in COMPARISON_LIMIT_WORDS and self._follows_field(tokens, start):
                continue
            if end < len(tokens) and tokens[end].kind == TokenKind.NUMBER:
                ir.limit = parse_limit(tokens[end].raw)
                return tokens[:start] + tokens[end + 1:]
            if tokens[start].key == "limit":
                found = tokens[end].raw if end < len(tokens) else ""
                raise MalformedValueError(
                    f"Nach 'limit' wird eine Zahl erwartet, gefunden: '{found}'",
                    details={"value": found},
                )
        return tokens

    # -------------------------------------------------------------------------
    # Pass 3: field mentions
    # -------------------------------------------------------------------------

    def _scan(self, tokens: list[Token], ir: QueryIR) -> None:
        self._tokens = tokens
        self._conditions: list[_Condition] = []
        self._pending_exclude = False
        self._pending_null = False
        self._exclude_run = False
        self._list_mode = False
        self._order_hint: Optional[int] = None
        self._connector_or = False

        i = 0
        while i < len(tokens):
            token = tokens[i]

            if token.kind == TokenKind.COMMA:
                i += 1
                continue

            if token.kind == TokenKind.WORD:
                end = self._match_phrase(tokens, i, FIELD_LIST_MARKERS)
                if end >= 0:
                    self._list_mode = True
                    i = end
                    continue
                key = token.key
                if key in ORDER_START:
                    hinted = [p.order for p in ir.projections if p.order is not None]
                    self._order_hint = max(hinted) + 1 if hinted else 0
                    i += 1
                    continue
                if key in ORDER_NEXT or key == "und":
                    i += 1
                    continue
                if key == "oder":
                    self._connector_or = True
                    i += 1
                    continue
                if key in EXCLUDE_MARKERS or key in NOT_WORDS:
                    self._pending_exclude = True
                    i += 1
                    continue
                if key in NULL_MARKERS:
                    self._pending_null = True
                    i += 1
                    continue

            match = self.index.match_at(tokens, i)
            if match is not None:
                if match.aliases_for(self.template) or not match.is_main:
                    alias = self._resolve(tokens, match)
                    i = self._handle_field(alias, match.end, ir)
                else:
                    i = match.end
                continue

            if token.kind == TokenKind.WORD and token.key in STOPWORDS:
                i += 1
                continue

            # Anything else ends the running list constructs
            if self._list_mode and token.kind == TokenKind.WORD:
                raise self._unknown_field(token)
            if token.is_value:
                logger.debug(f"Ignoring value without field: {token.raw}")
            self._reset_runs()
            self._pending_exclude = False
            self._pending_null = False
            i += 1

        self._attach(ir)

    def _reset_runs(self) -> None:
        self._list_mode = False
        self._exclude_run = False
        self._order_hint = None
        self._connector_or = False

    def _take_hint(self) -> Optional[int]:
        if self._order_hint is None:
            return None
        hint = self._order_hint
        self._order_hint += 1
        return hint

    def _handle_field(self, alias: str, j: int, ir: QueryIR) -> int:
        tokens = self._tokens
        negate = self._pending_exclude
        in_exclude_run = self._exclude_run
        null_check = self._pending_null
        self._pending_exclude = False
        self._pending_null = False

        if null_check:
            self._emit(self.rules.expand_predicate(Predicate(alias, Op.IS_NULL), self.template))
            self._reset_runs()
            return j

        # An exclusion run only carries over bare fields; a value is a new condition
        result = self._read_condition(alias, j, negate)
        if result is None:
            if negate or in_exclude_run:
                ir.add_projection(Projection(alias, exclude=True))
                self._exclude_run = True
            else:
                ir.add_projection(Projection(alias, order=self._take_hint()))
            self._connector_or = False

            after_comma = j < len(tokens) and tokens[j].kind == TokenKind.COMMA
            if not after_comma:
                # "ohne Firma und Status" excludes Firma only
                self._exclude_run = False
                if self._key(tokens, j) not in ({"und"} | ORDER_NEXT):
                    self._list_mode = False
                    self._order_hint = None
            return j

        node, end = result
        self._emit(node)
        self._list_mode = False
        self._exclude_run = False
        self._order_hint = None
        return end

    def _emit(self, node: Node) -> None:
        joined = self._connector_or and bool(self._conditions)
        self._conditions.append(_Condition(node, joined))
        self._connector_or = False

    def _attach(self, ir: QueryIR) -> None:
        """Group oder-linked runs into OR groups; everything else is AND-ed."""
        runs: list[list[Node]] = []
        for condition in self._conditions:
            if condition.joined_by_or and runs:
                runs[-1].append(condition.node)
            else:
                runs.append([condition.node])

        for run in runs:
            if len(run) == 1:
                self._add_node(ir.main_group, run[0])
                continue
            group = FilterGroup(logic=LogicMode.OR)
            for node in run:
                self._add_node(group, node)
            ir.add_group(group)

    @staticmethod
    def _add_node(group: FilterGroup, node: Node) -> None:
        if isinstance(node, Predicate):
            group.predicates.append(node)
        else:
            group.groups.append(node)

    # -------------------------------------------------------------------------
    # Conditions
    # -------------------------------------------------------------------------

    def _read_condition(self, alias: str, j: int, negate: bool) -> Optional[tuple[Node, int]]:
        """Operator/value context right after a field; None if there is none."""
        tokens = self._tokens
        k = j
        explicit_is = False
        if self._key(tokens, k) in ("ist", "sind"):
            explicit_is = True
            k += 1
        if self._key(tokens, k) in NOT_WORDS:
            negate = not negate
            k += 1

        key = self._key(tokens, k)
        if key in EMPTY_WORDS:
            return self._finish(Predicate(alias, Op.IS_NULL), negate), k + 1
        if key in PRESENT_WORDS:
            return self._finish(Predicate(alias, Op.IS_NOT_NULL), negate), k + 1

        if key == "zwischen":
            return self._read_between(alias, k + 1, negate)

        op: Optional[Op] = None
        strict = False  # an explicit operator must be followed by a value
        allow_und = False
        if key == "in":
            op, allow_und = Op.IN, True
            k += 1
        elif k < len(tokens) and tokens[k].kind == TokenKind.OPERATOR:
            op, strict = SYMBOL_OPERATORS.get(tokens[k].raw), True
            k += 1
        else:
            for phrase, phrase_op in OPERATOR_PHRASES:
                end = self._match_phrase(tokens, k, [phrase])
                if end >= 0:
                    op, k, strict = phrase_op, end, True
                    break
        if op is None and explicit_is:
            op = Op.EQUALS
        if op is not None:
            while self._key(tokens, k) in ARTICLES:
                k += 1

        values, end = self._read_values(k, allow_und)
        if not values:
            if strict:
                found = tokens[k].raw if k < len(tokens) else ""
                raise MalformedValueError(
                    f"Für '{alias}' fehlt ein Wert (gefunden: '{found}')",
                    details={"field": alias, "value": found},
                )
            return None

        alias = self.rules.redirect_field(alias, values[0], self.template)
        column = self._column(alias)

        if op is None:
            op = self._default_op(column, values, negate)
        elif op in (Op.EQUALS, Op.NOT_EQUALS) and len(values) > 1:
            if op == Op.NOT_EQUALS:
                negate = not negate
            op = Op.IN
        elif op == Op.NOT_EQUALS:
            op, negate = Op.EQUALS, not negate

        if op in (Op.EQUALS, Op.IN) and any(v.kind == TokenKind.WORD and has_wildcard(v.raw) for v in values):
            op = Op.CONTAINS
        if op == Op.CONTAINS and column.numeric:
            raise MalformedValueError(
                f"Textsuche ist für das Zahlenfeld '{alias}' nicht möglich",
                details={"field": alias, "values": [v.raw for v in values]},
            )

        if op == Op.IN:
            converted = tuple(self._convert(column, alias, op, v) for v in values)
            return self._finish(Predicate(alias, Op.IN, converted), negate), end

        if op == Op.CONTAINS and len(values) > 1:
            group = FilterGroup(logic=LogicMode.OR)
            for value in values:
                pattern = self._convert(column, alias, op, value)
                self._add_node(group, self.rules.expand_predicate(Predicate(alias, op, pattern), self.template))
            return (FilterGroup(groups=[group], negated=True) if negate else group), end

        if len(values) > 1:
            raise MalformedValueError(
                f"Operator '{op.value}' erlaubt nur einen Wert für '{alias}'",
                details={"field": alias, "values": [v.raw for v in values]},
            )

        value = self._convert(column, alias, op, values[0])
        return self._finish(Predicate(alias, op, value), negate), end

    def _read_between(self, alias: str, k: int, negate: bool) -> tuple[Node, int]:
        tokens = self._tokens
        low = self._read_value(k)
        high = None
        if low is not None and self._key(tokens, low[1]) == "und":
            high = self._read_value(low[1] + 1)
        if low is None or high is None:
            raise MalformedValueError(
                f"'zwischen' erwartet zwei Werte für '{alias}'",
                details={"field": alias},
            )
        alias = self.rules.redirect_field(alias, low[0], self.template)
        column = self._column(alias)
        bounds = ValueRange(
            self._convert(column, alias, Op.BETWEEN, low[0]),
            self._convert(column, alias, Op.BETWEEN, high[0]),
        )
        return self._finish(Predicate(alias, Op.BETWEEN, bounds), negate), high[1]

    def _finish(self, predicate: Predicate, negate: bool) -> Node:
        """Apply negation, then domain expansion."""
        if negate:
            flipped = _negated_op(predicate.op)
            if flipped is not None:
                return self.rules.expand_predicate(Predicate(predicate.field, flipped, predicate.value), self.template)
            inner = self.rules.expand_predicate(predicate, self.template)
            group = FilterGroup(negated=True)
            self._add_node(group, inner)
            return group
        return self.rules.expand_predicate(predicate, self.template)

    @staticmethod
    def _default_op(column: ColumnSpec, values: list[Token], negate: bool) -> Op:
        if len(values) > 1:
            return Op.IN
        value = values[0]
        if column.numeric:
            return Op.EQUALS
        if value.kind == TokenKind.WORD and has_wildcard(value.raw):
            return Op.CONTAINS
        if value.kind in (TokenKind.NUMBER, TokenKind.DATE, TokenKind.QUOTED):
            return Op.EQUALS
        if _HAS_DIGIT.search(value.raw):
            # identifiers such as "W123456" or "123-456"
            return Op.EQUALS
        if negate:
            return Op.EQUALS
        return Op.CONTAINS

    def _read_values(self, k: int, allow_und: bool = False) -> tuple[list[Token], int]:
        """One value or a comma / oder separated list of values."""
        tokens = self._tokens
        first = self._read_value(k)
        if first is None:
            return [], k
        values = [first[0]]
        end = first[1]
        while end < len(tokens):
            sep = tokens[end]
            if not (sep.kind == TokenKind.COMMA or sep.key == "oder" or (allow_und and sep.key == "und")):
                break
            nxt = self._read_value(end + 1)
            if nxt is None:
                break
            values.append(nxt[0])
            end = nxt[1]
        return values, end

    def _read_value(self, k: int) -> Optional[tuple[Token, int]]:
        tokens = self._tokens
        if k >= len(tokens):
            return None
        token = tokens[k]
        if token.kind == TokenKind.NUMBER:
            end = k + 1
            while end < len(tokens) and tokens[end].kind == TokenKind.WORD and is_currency_word(tokens[end].key):
                end += 1
            return token, end
        if token.kind in (TokenKind.DATE, TokenKind.QUOTED):
            return token, k + 1
        if not self._is_plain_word(tokens, k):
            return None

        # Multi-word text values, e.g. "Hansa Logistik"
        end = k + 1
        while self._is_plain_word(tokens, end) and tokens[end].kind == TokenKind.WORD:
            end += 1
        if end == k + 1:
            return token, end
        raw = " ".join(t.raw for t in tokens[k:end])
        return Token(raw, fold_text(raw), TokenKind.WORD), end

    def _convert(self, column: ColumnSpec, alias: str, op: Op, token: Token) -> object:
        """Bind value for one token, shaped for the column and operator."""
        raw = token.raw.strip()

        if column.numeric:
            number = parse_number(raw) if token.kind != TokenKind.DATE else None
            if number is None:
                raise MalformedValueError(
                    f"'{raw}' ist keine gültige Zahl für '{alias}'",
                    details={"field": alias, "value": raw},
                )
            return number

        if token.kind == TokenKind.DATE or (token.kind == TokenKind.QUOTED and looks_like_date(raw)):
            parsed = parse_date(raw)
            if parsed is None:
                raise MalformedValueError(
                    f"'{raw}' ist kein gültiges Datum für '{alias}'",
                    details={"field": alias, "value": raw},
                )
            if op == Op.CONTAINS:
                return to_like_pattern(parsed)
            return parsed

        if op == Op.CONTAINS:
            return to_like_pattern(raw)
        return raw


def parse_request(
    text: str,
    template: ReportTemplate,
    index: Optional[KeywordIndex] = None,
    rules: Optional[FieldRules] = None,
    context: ContextType = ContextType.UNKNOWN,
) -> QueryIR:
    """Parse ``text`` against a single template."""
    return RequestParser(template, index=index, rules=rules, context=context).parse(text)
