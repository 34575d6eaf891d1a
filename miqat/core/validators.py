# miqat/core/validators.py
from __future__ import annotations

from datetime import date, datetime
from typing import Any, Dict, List, Mapping, Optional, Tuple, TypedDict, Union
from zoneinfo import ZoneInfo

from miqat.core import methods as mreg
from miqat.core.authorities import method_id_for_country
from miqat.core.calculator import CalculationConfig
from miqat.core.constants import PRAYERS
from miqat.core.errors import ValidationError
from miqat.core.models import AsrSchool, HighLatitudeMethod, TimeFormat
from miqat.core.orchestrator import OrchestratorOptions

# ───────────────────────── helpers ─────────────────────────

def _err(loc: List[Any] | str, msg: str, typ: str = "value_error") -> Dict[str, Any]:
    return {"loc": [loc] if isinstance(loc, str) else loc, "msg": msg, "type": typ}

def _as_float(v: Any) -> Optional[float]:
    if v is None or isinstance(v, bool):
        return None
    try:
        x = float(v)
    except (TypeError, ValueError):
        return None
    if x != x or x in (float("inf"), float("-inf")):
        return None
    return x

def _truthy(val: Any) -> Optional[bool]:
    if isinstance(val, bool):
        return val
    if val is None:
        return None
    s = str(val).strip().lower()
    if s in {"1", "true", "t", "yes", "y", "on"}:
        return True
    if s in {"0", "false", "f", "no", "n", "off"}:
        return False
    return None

def _validate_iana_tz(tz: str, loc: Optional[List[str]] = None) -> str:
    try:
        ZoneInfo(tz)
    except Exception:
        raise ValidationError([{
            "loc": loc or ["timezone"],
            "msg": "must be a UTC offset in hours or a valid IANA zone like 'Europe/Istanbul'",
            "type": "value_error",
        }])
    return tz

def _pick(body: Mapping[str, Any], *keys: str) -> Any:
    for k in keys:
        if k in body and body[k] not in (None, ""):
            return body[k]
    return None


# ───────────────────────── atomic parsers ─────────────────────────

def parse_date(s: Any, loc: str = "date") -> date:
    if isinstance(s, date):
        return s
    try:
        return datetime.strptime(str(s).strip(), "%Y-%m-%d").date()
    except (TypeError, ValueError):
        raise ValidationError(_err(loc, "date must be 'YYYY-MM-DD'", "value_error.date"))

def parse_latlon(lat: Any, lon: Any, lat_key="latitude", lon_key="longitude") -> Tuple[float, float]:
    lat_f = _as_float(lat); lon_f = _as_float(lon)
    if lat_f is None or lon_f is None:
        raise ValidationError(_err([lat_key, lon_key], "latitude/longitude must be finite numbers", "type_error.float"))
    if not (-90.0 <= lat_f <= 90.0):
        raise ValidationError(_err(lat_key, "latitude must be between -90 and 90"))
    if not (-180.0 <= lon_f <= 180.0):
        raise ValidationError(_err(lon_key, "longitude must be between -180 and 180"))
    return float(lat_f), float(lon_f)

def parse_timezone(val: Any) -> Union[float, str, None]:
    """None, hours east of UTC (-14..14), or an IANA zone name."""
    if val is None or (isinstance(val, str) and not val.strip()):
        return None
    x = _as_float(val)
    if x is not None:
        if not (-14.0 <= x <= 14.0):
            raise ValidationError(_err("timezone", "UTC offset must be between -14 and 14 hours"))
        return x
    if not isinstance(val, str):
        raise ValidationError(_err("timezone", "must be a number or string", "type_error"))
    return _validate_iana_tz(val.strip())

def parse_method(val: Any, country: Any = None) -> int:
    """Method id; when absent, the country's authority method or registry match. Unknown ids pass through."""
    if val is None or (isinstance(val, str) and not val.strip()):
        return method_id_for_country(str(country)) if country else mreg.DEFAULT_METHOD_ID
    if isinstance(val, bool):
        raise ValidationError(_err("method", "must be an integer id", "type_error.integer"))
    try:
        return int(str(val).strip())
    except ValueError:
        raise ValidationError(_err("method", "must be an integer id", "type_error.integer"))

_SCHOOL_ALIASES = {"shafi": "shafi", "shafii": "shafi", "standard": "shafi", "0": "shafi",
                   "hanafi": "hanafi", "1": "hanafi"}

def parse_asr_school(val: Any) -> Optional[AsrSchool]:
    if val is None or str(val).strip() == "":
        return None
    s = _SCHOOL_ALIASES.get(str(val).strip().lower())
    if s is None:
        raise ValidationError(_err("school", "school must be 'shafi' or 'hanafi'"))
    return AsrSchool(s)

_HIGHLAT_ALIASES = {
    "none": HighLatitudeMethod.NONE,
    "middleofnight": HighLatitudeMethod.MIDDLE_OF_NIGHT,
    "middle_of_night": HighLatitudeMethod.MIDDLE_OF_NIGHT,
    "oneseventh": HighLatitudeMethod.ONE_SEVENTH,
    "one_seventh": HighLatitudeMethod.ONE_SEVENTH,
    "anglebased": HighLatitudeMethod.ANGLE_BASED,
    "angle_based": HighLatitudeMethod.ANGLE_BASED,
}

def parse_high_latitude(val: Any) -> HighLatitudeMethod:
    if val is None or str(val).strip() == "":
        return HighLatitudeMethod.ANGLE_BASED
    out = _HIGHLAT_ALIASES.get(str(val).strip().lower().replace("-", "_"))
    if out is None:
        raise ValidationError(_err("high_latitude", "must be one of none, middleOfNight, oneSeventh, angleBased"))
    return out

def parse_time_format(val: Any) -> TimeFormat:
    if val is None or str(val).strip() == "":
        return TimeFormat.H24
    try:
        return TimeFormat(str(val).strip().lower())
    except ValueError:
        raise ValidationError(_err("format", "format must be '24h', '12h' or 'float'"))

def parse_adjustments(val: Any) -> Dict[str, float]:
    if val is None:
        return {}
    if not isinstance(val, dict):
        raise ValidationError(_err("adjustments", "must be an object of prayer -> minutes", "type_error.dict"))
    out: Dict[str, float] = {}
    for k, v in val.items():
        if k not in PRAYERS:
            raise ValidationError(_err(["adjustments", k], f"unknown prayer '{k}'"))
        x = _as_float(v)
        if x is None:
            raise ValidationError(_err(["adjustments", k], "must be a number (minutes)", "type_error.float"))
        out[k] = x
    return out


# ───────────────────────── payloads ─────────────────────────

class PrayerPayload(TypedDict):
    date: date
    latitude: float
    longitude: float
    config: CalculationConfig

def _location(body: Mapping[str, Any]) -> Tuple[float, float]:
    return parse_latlon(_pick(body, "latitude", "lat"), _pick(body, "longitude", "lon", "lng"))

def _calc_config(body: Mapping[str, Any]) -> CalculationConfig:
    school = parse_asr_school(_pick(body, "school", "asr_school", "asr"))
    use_method_adj = _truthy(body.get("method_adjustments"))
    kwargs: Dict[str, Any] = dict(
        method_id=parse_method(_pick(body, "method", "method_id"), _pick(body, "country")),
        high_latitude_method=parse_high_latitude(_pick(body, "high_latitude", "high_lat")),
        timezone=parse_timezone(_pick(body, "timezone", "tz")),
        apply_method_adjustments=True if use_method_adj is None else use_method_adj,
        adjustments=parse_adjustments(body.get("adjustments")),
        time_format=parse_time_format(body.get("format")),
    )
    if school is not None:
        kwargs["asr_school"] = school
    threshold = _pick(body, "high_latitude_threshold")
    if threshold is not None:
        t = _as_float(threshold)
        if t is None or not (0.0 <= t <= 90.0):
            raise ValidationError(_err("high_latitude_threshold", "must be a number between 0 and 90"))
        kwargs["high_latitude_threshold"] = t
    return CalculationConfig(**kwargs)

def _require_object(body: Any) -> Mapping[str, Any]:
    if not isinstance(body, Mapping):
        raise ValidationError("payload must be an object")
    return body

def parse_prayer_payload(body: Any, today: Optional[date] = None) -> PrayerPayload:
    """Inputs for /api/prayer-times. `date` defaults to today."""
    body = _require_object(body)
    raw_date = body.get("date")
    d = parse_date(raw_date) if raw_date else (today or date.today())
    lat, lon = _location(body)
    return {"date": d, "latitude": lat, "longitude": lon, "config": _calc_config(body)}

def parse_month_payload(body: Any, today: Optional[date] = None) -> Tuple[int, int, float, float, CalculationConfig]:
    body = _require_object(body)
    ref = today or date.today()
    try:
        raw_year, raw_month = body.get("year"), body.get("month")
        year = ref.year if raw_year in (None, "") else int(raw_year)
        month = ref.month if raw_month in (None, "") else int(raw_month)
    except (TypeError, ValueError):
        raise ValidationError(_err(["year", "month"], "year and month must be integers", "type_error.integer"))
    if not (1 <= month <= 12):
        raise ValidationError(_err("month", "month must be between 1 and 12"))
    if not (1 <= year <= 9999):
        raise ValidationError(_err("year", "year out of range"))
    lat, lon = _location(body)
    return year, month, lat, lon, _calc_config(body)

def parse_accurate_payload(body: Any, today: Optional[date] = None) -> Tuple[date, float, float, OrchestratorOptions, TimeFormat]:
    """Inputs for /api/prayer-times/accurate."""
    body = _require_object(body)
    raw_date = body.get("date")
    d = parse_date(raw_date) if raw_date else (today or date.today())
    lat, lon = _location(body)

    accuracy = _as_float(_pick(body, "accuracy"))
    if accuracy is not None and accuracy < 0:
        raise ValidationError(_err("accuracy", "accuracy must be >= 0 meters"))
    force = _truthy(_pick(body, "force_fallback", "forceFallback"))

    opts = OrchestratorOptions(
        method_id=parse_method(_pick(body, "method", "method_id"), _pick(body, "country")),
        accuracy=accuracy or 0.0,
        force_fallback=bool(force),
        timezone=parse_timezone(_pick(body, "timezone", "tz")),
        asr_school=parse_asr_school(_pick(body, "school", "asr_school", "asr")),
        district=_pick(body, "district"),
    )
    return d, lat, lon, opts, parse_time_format(body.get("format"))

def parse_qibla_payload(body: Any) -> Dict[str, Optional[float]]:
    body = _require_object(body)
    lat, lon = _location(body)
    out: Dict[str, Optional[float]] = {"latitude": lat, "longitude": lon, "declination": None}
    dec = _pick(body, "declination")
    if dec is not None:
        x = _as_float(dec)
        if x is None or not (-180.0 <= x <= 180.0):
            raise ValidationError(_err("declination", "declination must be a number of degrees in [-180, 180]"))
        out["declination"] = x
    return out


def parse_hijri_year(val: Any) -> int:
    if val is None or isinstance(val, bool) or str(val).strip() == "":
        raise ValidationError(_err("year", "hijri year is required", "value_error.missing"))
    try:
        year = int(str(val).strip())
    except ValueError:
        raise ValidationError(_err("year", "hijri year must be an integer", "type_error.integer"))
    if year < 1:
        raise ValidationError(_err("year", "hijri year must be positive"))
    return year

def parse_ramadan_payload(body: Any) -> Tuple[int, Optional[str]]:
    """(hijri_year, country) for the Ramadan calendar endpoints."""
    body = _require_object(body)
    country = _pick(body, "country")
    return parse_hijri_year(_pick(body, "year", "hijri_year")), (str(country) if country is not None else None)

def parse_ramadan_check_payload(body: Any, today: Optional[date] = None) -> Tuple[date, Optional[str]]:
    body = _require_object(body)
    raw_date = body.get("date")
    d = parse_date(raw_date) if raw_date else (today or date.today())
    country = _pick(body, "country")
    return d, (str(country) if country is not None else None)


__all__ = [
    "ValidationError",
    "parse_date",
    "parse_latlon",
    "parse_timezone",
    "parse_method",
    "parse_asr_school",
    "parse_high_latitude",
    "parse_time_format",
    "parse_adjustments",
    "parse_prayer_payload",
    "parse_month_payload",
    "parse_accurate_payload",
    "parse_qibla_payload",
    "parse_hijri_year",
    "parse_ramadan_payload",
    "parse_ramadan_check_payload",
]
