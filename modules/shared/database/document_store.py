"""
Document Store - Schnittstelle zum Dokumentenspeicher

Alle Module sprechen nur mit DocumentStore (query/get/add/set/update/delete/batch_write).
Konkrete Implementierungen: InMemoryDocumentStore (Tests, lokale Entwicklung)
und SqlDocumentStore (SQLAlchemy, JSON-Dokumente in einer Tabelle).
"""

import functools
from abc import ABC, abstractmethod
from datetime import date, datetime, time, timezone
from decimal import Decimal
from typing import Any, Dict, Iterable, List, NamedTuple, Optional, Sequence, Tuple

from ..dates import STORE_TZ

OPERATORS = ('==', '!=', '>=', '<=', '<', '>')

_MISSING = object()


@functools.total_ordering
class StoreTimestamp:
    """Speicher-nativer Zeitstempel (zeitzonenbewusst, intern UTC)"""

    __slots__ = ('_dt',)

    def __init__(self, value: datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=STORE_TZ)
        self._dt = value.astimezone(timezone.utc)

    @classmethod
    def from_date(cls, day: date) -> 'StoreTimestamp':
        return cls(datetime.combine(day, time(0, 0, 0), tzinfo=STORE_TZ))

    @classmethod
    def from_isoformat(cls, value: str) -> 'StoreTimestamp':
        return cls(datetime.fromisoformat(value))

    def to_datetime(self) -> datetime:
        """Zeitpunkt in der Zeitzone des Speichers"""
        return self._dt.astimezone(STORE_TZ)

    def to_date(self) -> date:
        return self.to_datetime().date()

    def isoformat(self) -> str:
        return self._dt.isoformat()

    def __eq__(self, other):
        if not isinstance(other, StoreTimestamp):
            return NotImplemented
        return self._dt == other._dt

    def __lt__(self, other):
        if not isinstance(other, StoreTimestamp):
            return NotImplemented
        return self._dt < other._dt

    def __hash__(self):
        return hash(self._dt)

    def __repr__(self):
        return f"StoreTimestamp({self._dt.isoformat()})"

    def __str__(self):
        return self.to_datetime().isoformat()


class Filter(NamedTuple):
    field: str
    op: str
    value: Any


class Document(NamedTuple):
    id: str
    data: Dict[str, Any]


class BatchOperation(NamedTuple):
    type: str  # 'set' | 'delete'
    collection: str
    id: str
    data: Optional[Dict[str, Any]] = None


# ═══════════════════════════════════════════════════════════════
# FILTER-SEMANTIK (gemeinsam für alle Implementierungen)
# ═══════════════════════════════════════════════════════════════

def get_field(data: Dict[str, Any], path: str) -> Any:
    """Dot-Path Zugriff ('wunschtermin.datum'); fehlend → _MISSING"""
    current: Any = data
    for part in path.split('.'):
        if not isinstance(current, dict) or part not in current:
            return _MISSING
        current = current[part]
    return current


def _type_family(value: Any) -> str:
    if value is None:
        return 'null'
    if isinstance(value, bool):
        return 'bool'
    if isinstance(value, (int, float, Decimal)):
        return 'number'
    if isinstance(value, str):
        return 'string'
    if isinstance(value, StoreTimestamp):
        return 'timestamp'
    return 'other'


_FAMILY_ORDER = {'null': 0, 'bool': 1, 'number': 2, 'timestamp': 3, 'string': 4, 'other': 5}


def _matches(data: Dict[str, Any], flt: Filter) -> bool:
    value = get_field(data, flt.field)
    if value is _MISSING:
        return False

    if flt.op == '==':
        return _type_family(value) == _type_family(flt.value) and value == flt.value
    if flt.op == '!=':
        return not (_type_family(value) == _type_family(flt.value) and value == flt.value)

    # Bereichsfilter vergleichen nur gleiche Typfamilien (String nie gegen Timestamp)
    family = _type_family(value)
    if family != _type_family(flt.value) or family in ('null', 'other'):
        return False
    if flt.op == '>=':
        return value >= flt.value
    if flt.op == '<=':
        return value <= flt.value
    if flt.op == '<':
        return value < flt.value
    if flt.op == '>':
        return value > flt.value
    raise ValueError(f"Unbekannter Operator: {flt.op}")


def normalize_filters(filters: Optional[Iterable[Sequence[Any]]]) -> List[Filter]:
    result = []
    for flt in filters or []:
        flt = Filter(*flt)
        if flt.op not in OPERATORS:
            raise ValueError(f"Unbekannter Operator: {flt.op}")
        result.append(flt)
    return result


def apply_query(documents: Iterable[Document], filters: List[Filter],
                order_by: Optional[str] = None, descending: bool = False,
                limit: Optional[int] = None) -> List[Document]:
    """Filtern, Sortieren und Limitieren einer Dokumentliste"""
    if limit is not None and limit < 0:
        raise ValueError("limit darf nicht negativ sein")

    result = [doc for doc in documents if all(_matches(doc.data, f) for f in filters)]

    if order_by:
        result = [doc for doc in result if get_field(doc.data, order_by) is not _MISSING]

        def sort_key(doc: Document) -> Tuple[int, Any]:
            value = get_field(doc.data, order_by)
            family = _type_family(value)
            return (_FAMILY_ORDER[family], value if family not in ('null', 'other') else 0)

        result.sort(key=sort_key, reverse=descending)

    if limit is not None:
        result = result[:limit]
    return result


# ═══════════════════════════════════════════════════════════════
# SCHNITTSTELLE
# ═══════════════════════════════════════════════════════════════

class DocumentStore(ABC):
    """
    Abstract Base Class für den Dokumentenspeicher

    Fehler beim Zugriff werden als StoreUnavailableError geworfen,
    niemals als leeres Ergebnis zurückgegeben.
    """

    @abstractmethod
    async def query(self, collection: str, filters: Optional[Iterable[Sequence[Any]]] = None,
                    order_by: Optional[str] = None, descending: bool = False,
                    limit: Optional[int] = None) -> List[Document]:
        """Dokumente einer Collection, gefiltert über (Feldpfad, Operator, Wert)"""
        pass

    @abstractmethod
    async def get(self, collection: str, doc_id: str) -> Optional[Document]:
        pass

    @abstractmethod
    async def add(self, collection: str, data: Dict[str, Any]) -> str:
        """Neues Dokument mit vom Speicher vergebener ID"""
        pass

    @abstractmethod
    async def set(self, collection: str, doc_id: str, data: Dict[str, Any]) -> None:
        pass

    @abstractmethod
    async def update(self, collection: str, doc_id: str, fields: Dict[str, Any]) -> bool:
        """Felder mergen; False wenn Dokument nicht existiert"""
        pass

    @abstractmethod
    async def delete(self, collection: str, doc_id: str) -> bool:
        pass

    @abstractmethod
    async def batch_write(self, operations: List[BatchOperation]) -> None:
        """Alles-oder-nichts: entweder alle Operationen oder keine"""
        pass


def validate_batch(operations: List[BatchOperation]) -> None:
    for op in operations:
        if op.type not in ('set', 'delete'):
            raise ValueError(f"Unbekannter Batch-Typ: {op.type}")
        if op.type == 'set' and op.data is None:
            raise ValueError(f"Batch 'set' ohne Daten für {op.collection}/{op.id}")


def to_jsonable(value: Any) -> Any:
    """Dokumentdaten für JSON-Antworten (Timestamps → ISO-String)"""
    if isinstance(value, StoreTimestamp):
        return value.isoformat()
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, dict):
        return {k: to_jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set)):
        return [to_jsonable(v) for v in value]
    return value
