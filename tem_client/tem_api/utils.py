# tem_client/tem_api/utils.py
#
#
# Imports
from typing import Dict, Any, Optional, List, Iterable
#
# 3rd-party Libraries
from loguru import logger
#
# Local Imports
from .schemas import Record, LanguageCategory
#
#######################################################################################################################
#
# Functions:

# Backend column name first, compact client name second
_FIELD_SOURCES = {
    'key': ('key', 'k'),
    'body': ('expansion', 'e', 'body'),
    'style': ('style',),
    'description': ('description', 'd'),
    'tags': ('tags',),
    'application': ('application',),
    'category': ('mainCategory', 'category'),
    'subcategory': ('subcategory',),
    'platform': ('platform',),
    'usage_frequency': ('usageFrequency', 'usage_frequency'),
    'updated_at': ('updatedAt', 'updated_at'),
}

_TRUTHY = {'true', '1', 'yes', 'y', 't', 'x'}


def _first_present(raw: Dict[str, Any], names: Iterable[str]) -> Any:
    for name in names:
        value = raw.get(name)
        if value is not None:
            return value
    return None


def normalize_language(value: Any) -> LanguageCategory:
    """
    Maps the free-text language cell to a category.
    "Spanish", "es-span", "ESPAÑOL (span)" -> spanish; "English", "eng" -> english; anything else -> all.
    """
    if not value:
        return 'all'
    text = str(value).lower()
    if 'span' in text:
        return 'spanish'
    if 'eng' in text:
        return 'english'
    return 'all'


def coerce_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    if isinstance(value, (int, float)):
        return value != 0
    return str(value).strip().lower() in _TRUTHY


def _as_optional_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value)
    return text if text != '' else None


def record_from_remote(raw: Dict[str, Any]) -> Optional[Record]:
    """
    Converts one raw backend row into a Record.

    Returns None (and logs) for rows without a usable key; the sheet
    regularly has blank trailing rows.
    """
    key = _first_present(raw, _FIELD_SOURCES['key'])
    if key is None or str(key).strip() == '':
        logger.warning(f"Skipping remote record without a key: {str(raw)[:120]}")
        return None

    body = _first_present(raw, _FIELD_SOURCES['body'])
    fields: Dict[str, Any] = {
        'key': str(key).strip(),
        'body': '' if body is None else str(body),
        'language': normalize_language(_first_present(raw, ('language', 's'))),
        'favorite': coerce_bool(raw.get('favorite')),
    }
    for field_name in ('style', 'description', 'tags', 'application', 'category',
                       'subcategory', 'platform', 'usage_frequency'):
        fields[field_name] = _as_optional_text(_first_present(raw, _FIELD_SOURCES[field_name]))
    fields['updated_at'] = _first_present(raw, _FIELD_SOURCES['updated_at'])
    return Record(**fields)


def records_from_remote(rows: List[Dict[str, Any]]) -> List[Record]:
    records = []
    for raw in rows:
        if not isinstance(raw, dict):
            logger.warning(f"Skipping non-object remote record of type {type(raw).__name__}")
            continue
        record = record_from_remote(raw)
        if record is not None:
            records.append(record)
    return records


def record_to_payload(record: Record) -> Dict[str, Any]:
    """Builds the camelCase payload upsertShortcut expects."""
    payload = {
        'key': record.key,
        'expansion': record.body,
        'language': record.language,
        'style': record.style,
        'description': record.description,
        'tags': record.tags,
        'application': record.application,
        'mainCategory': record.category,
        'subcategory': record.subcategory,
        'platform': record.platform,
        'usageFrequency': record.usage_frequency,
        'favorite': record.favorite,
        'updatedAt': record.updated_at.isoformat() if record.updated_at else None,
    }
    return {name: value for name, value in payload.items() if value is not None}

#
# End of tem_client/tem_api/utils.py
########################################################################################################################
