# miqat/core/authorities.py
"""
Official religious authorities per country.

The authority's own method wins when resolving a country's calculation
method; the method registry's country sets and regional buckets are only
consulted for countries without an entry here.
"""
from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional

from miqat.core import methods as mreg
from miqat.core.countries import to_country_code

__all__ = [
    "Authority",
    "AUTHORITIES",
    "authority_by_code",
    "authority_for_country",
    "all_authorities",
    "method_id_for_country",
]


@dataclass(frozen=True)
class Authority:
    code: str
    name: str
    name_local: str
    authority: str
    authority_short: str
    method_id: int
    website: Optional[str]
    timezone: str
    uses_lunar_sighting: bool
    notes: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "name": self.name,
            "name_local": self.name_local,
            "authority": self.authority,
            "authority_short": self.authority_short,
            "method_id": self.method_id,
            "method": mreg.method_name(self.method_id),
            "website": self.website,
            "timezone": self.timezone,
            "uses_lunar_sighting": self.uses_lunar_sighting,
            "notes": self.notes,
        }


_A = Authority

AUTHORITIES: Mapping[str, Authority] = MappingProxyType({a.code: a for a in (
    _A("TR", "Turkey", "Türkiye", "Diyanet İşleri Başkanlığı", "Diyanet", mreg.DIYANET,
       "https://www.diyanet.gov.tr", "Europe/Istanbul", False,
       "Publishes the official prayer times and religious calendar for Turkey."),
    _A("SA", "Saudi Arabia", "المملكة العربية السعودية", "Umm Al-Qura Calendar Committee", "Umm Al-Qura",
       mreg.UMM_AL_QURA, "https://www.ummulqura.org.sa", "Asia/Riyadh", True,
       "Reference for Makkah and Madinah; month starts follow moon sighting."),
    _A("EG", "Egypt", "مصر", "Egyptian General Authority of Survey", "EGA", mreg.EGYPT,
       "https://www.esa.gov.eg", "Africa/Cairo", True, "Dar al-Ifta decides by moon sighting."),
    _A("IR", "Iran", "ایران", "Institute of Geophysics, University of Tehran", "Tehran", mreg.TEHRAN,
       "https://geophysics.ut.ac.ir", "Asia/Tehran", False, "Shia calculation angles."),
    _A("PK", "Pakistan", "پاکستان", "Central Ruet-e-Hilal Committee", "Ruet-e-Hilal", mreg.KARACHI,
       "https://www.moonsighting.pk", "Asia/Karachi", True,
       "Moon sighting; usually one day after Saudi Arabia."),
    _A("IN", "India", "भारत", "Central Hilal Committee of India", "CHCI", mreg.KARACHI,
       None, "Asia/Kolkata", True, "Local moon sighting; may vary by region."),
    _A("BD", "Bangladesh", "বাংলাদেশ", "Islamic Foundation Bangladesh", "IFB", mreg.KARACHI,
       "https://islamicfoundation.gov.bd", "Asia/Dhaka", True,
       "Usually the same day as Saudi Arabia or one day after."),
    _A("ID", "Indonesia", "Indonesia", "Kementerian Agama (Ministry of Religious Affairs)", "Kemenag",
       mreg.SINGAPORE, "https://kemenag.go.id", "Asia/Jakarta", True, "Joint moon sighting decision."),
    _A("MY", "Malaysia", "Malaysia", "JAKIM (Department of Islamic Development Malaysia)", "JAKIM",
       mreg.SINGAPORE, "https://www.islam.gov.my", "Asia/Kuala_Lumpur", True,
       "Coordinates with Singapore and Brunei."),
    _A("US", "United States", "United States", "Islamic Society of North America", "ISNA", mreg.ISNA,
       "https://www.isna.net", "America/New_York", False,
       "Calculation based; Fiqh Council of North America decisions."),
    _A("CA", "Canada", "Canada", "Islamic Society of North America - Canada", "ISNA", mreg.ISNA,
       "https://www.isnacanada.com", "America/Toronto", False, "Same methodology as the United States."),
    _A("GB", "United Kingdom", "United Kingdom", "Muslim Council of Britain", "MCB", mreg.MWL,
       "https://mcb.org.uk", "Europe/London", False, "Communities may follow different days."),
    _A("DE", "Germany", "Deutschland", "Zentralrat der Muslime in Deutschland", "ZMD", mreg.MWL,
       "https://zentralrat.de", "Europe/Berlin", False, "DITIB may follow the Diyanet calendar."),
    _A("FR", "France", "France", "UOIF (Union des Organisations Islamiques de France)", "UOIF",
       mreg.FRANCE, "https://www.uoif-online.com", "Europe/Paris", False, "France-specific angles."),
    _A("QA", "Qatar", "قطر", "Ministry of Awqaf and Islamic Affairs", "Awqaf Qatar", mreg.UMM_AL_QURA,
       "https://www.awqaf.gov.qa", "Asia/Qatar", True, "Usually the same day as Saudi Arabia."),
    _A("AE", "United Arab Emirates", "الإمارات", "General Authority of Islamic Affairs and Endowments",
       "Awqaf UAE", mreg.UMM_AL_QURA, "https://www.awqaf.gov.ae", "Asia/Dubai", True,
       "Usually the same day as Saudi Arabia."),
    _A("KW", "Kuwait", "الكويت", "Ministry of Awqaf and Islamic Affairs", "Awqaf Kuwait", mreg.UMM_AL_QURA,
       "https://www.awqaf.gov.kw", "Asia/Kuwait", True, "Coordinated with the Gulf states."),
    _A("MA", "Morocco", "المغرب", "Ministry of Habous and Islamic Affairs", "Habous", mreg.MWL,
       "https://www.habous.gov.ma", "Africa/Casablanca", True, "Own moon sighting."),
    _A("DZ", "Algeria", "الجزائر", "Ministry of Religious Affairs", "MRA Algeria", mreg.MWL,
       "https://www.marw.dz", "Africa/Algiers", True, "Usually the same day as Morocco."),
    _A("RU", "Russia", "Россия", "Spiritual Administration of Muslims of Russia", "SAMR", mreg.RUSSIA,
       "https://www.dumrf.ru", "Europe/Moscow", False, "Russia-specific calculation."),
    _A("BA", "Bosnia and Herzegovina", "Bosna i Hercegovina", "Islamic Community in Bosnia and Herzegovina",
       "Rijaset", mreg.MWL, "https://www.rijaset.ba", "Europe/Sarajevo", False, "Reference for the Balkans."),
    _A("JO", "Jordan", "الأردن", "Ministry of Awqaf and Islamic Affairs", "Awqaf Jordan", mreg.MWL,
       "https://www.awqaf.gov.jo", "Asia/Amman", True, "Usually the same day as Palestine."),
    _A("NG", "Nigeria", "Nigeria", "Nigerian Supreme Council for Islamic Affairs", "NSCIA", mreg.MWL,
       None, "Africa/Lagos", True, ""),
)})


def authority_by_code(code: Any) -> Optional[Authority]:
    if not code:
        return None
    return AUTHORITIES.get(str(code).strip().upper())


def authority_for_country(country: Any) -> Optional[Authority]:
    """Authority for a code or any country alias."""
    return authority_by_code(to_country_code(country))


def all_authorities() -> List[Authority]:
    return list(AUTHORITIES.values())


def method_id_for_country(country: Any) -> int:
    auth = authority_for_country(country)
    if auth is not None:
        return auth.method_id
    return mreg.resolve_method(country)
