"""Translates ``smlt.*`` request parameters into a :class:`RequestConfig`."""

from __future__ import annotations

from typing import Any, List, Mapping, Optional, Sequence, Union

from .config import SmltDefaults
from .errors import RequestParameterError
from .models import FusionMode, RequestConfig

ParamValue = Union[str, Sequence[str]]

ENABLE_PARAM = "smlt"
ID_PARAM = "smlt.id"
COUNT_PARAM = "smlt.count"
MODE_PARAM = "smlt.mode"
VECTOR_WEIGHT_PARAM = "smlt.vectorWeight"
LEXICAL_WEIGHT_PARAM = "smlt.lexicalWeight"
LEGACY_LEXICAL_WEIGHT_PARAM = "smlt.mltWeight"
VECTOR_FIELD_PARAM = "smlt.vectorField"
LEXICAL_FIELDS_PARAM = "smlt.mltFields"
RETURN_FIELDS_PARAM = "smlt.fl"
FILTER_PARAM = "fq"

_TRUE_VALUES = {"true", "on", "yes", "1"}
_FALSE_VALUES = {"false", "off", "no", "0", ""}


def _all(params: Mapping[str, ParamValue], name: str) -> List[str]:
    value = params.get(name)
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    return [str(item) for item in value if item is not None]


def _first(params: Mapping[str, ParamValue], name: str) -> Optional[str]:
    values = _all(params, name)
    return values[0] if values else None


def _bool(params: Mapping[str, ParamValue], name: str, default: bool) -> bool:
    raw = _first(params, name)
    if raw is None:
        return default
    lowered = raw.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise RequestParameterError(name, raw, "expected a boolean")


def _int(params: Mapping[str, ParamValue], name: str, default: int) -> int:
    raw = _first(params, name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw.strip())
    except ValueError:
        raise RequestParameterError(name, raw, "expected an integer") from None


def _float(params: Mapping[str, ParamValue], name: str, default: float) -> float:
    raw = _first(params, name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw.strip())
    except ValueError:
        raise RequestParameterError(name, raw, "expected a number") from None


def _csv(params: Mapping[str, ParamValue], name: str, default: Sequence[str]) -> List[str]:
    raw = _first(params, name)
    if raw is None or not raw.strip():
        return list(default)
    return [part.strip() for part in raw.split(",") if part.strip()]


def is_enabled(params: Mapping[str, Any]) -> bool:
    return _bool(params, ENABLE_PARAM, False)


def build_request_config(
    params: Mapping[str, ParamValue],
    defaults: SmltDefaults,
) -> Optional[RequestConfig]:
    """Return the request configuration, or None when SMLT was not asked for.

    A missing enable flag or source id is a silent no-op; values that cannot be
    interpreted raise :class:`RequestParameterError`.
    """
    if not is_enabled(params):
        return None
    source_id = (_first(params, ID_PARAM) or "").strip()
    if not source_id:
        return None

    raw_mode = _first(params, MODE_PARAM)
    try:
        mode = FusionMode.parse(raw_mode)
    except ValueError as exc:
        raise RequestParameterError(MODE_PARAM, raw_mode, str(exc)) from None

    lexical_weight_param = (
        LEXICAL_WEIGHT_PARAM if _first(params, LEXICAL_WEIGHT_PARAM) is not None else LEGACY_LEXICAL_WEIGHT_PARAM
    )
    lexical_fields = _csv(params, LEXICAL_FIELDS_PARAM, defaults.lexical_fields)
    if not lexical_fields:
        raise RequestParameterError(LEXICAL_FIELDS_PARAM, _first(params, LEXICAL_FIELDS_PARAM), "no field names")

    return RequestConfig.create(
        source_id=source_id,
        count=_int(params, COUNT_PARAM, defaults.count),
        mode=mode,
        vector_weight=_float(params, VECTOR_WEIGHT_PARAM, defaults.vector_weight),
        lexical_weight=_float(params, lexical_weight_param, defaults.lexical_weight),
        vector_field=(_first(params, VECTOR_FIELD_PARAM) or "").strip() or defaults.vector_field,
        lexical_fields=lexical_fields,
        return_fields=_csv(params, RETURN_FIELDS_PARAM, defaults.return_fields),
        filter_queries=_all(params, FILTER_PARAM),
        id_field=defaults.id_field,
    )
