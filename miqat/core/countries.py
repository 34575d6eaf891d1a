# miqat/core/countries.py
"""
Country name normalization.

Users send "Germany", "almanya", "DEU" or "de"; everything downstream keys on
the ISO 3166 alpha-2 code. Aliases are matched case-insensitively after
trimming. Per code, the first alias longer than two letters is the display name.
"""
from __future__ import annotations

from types import MappingProxyType
from typing import Any, Mapping, Optional, Tuple

__all__ = [
    "COUNTRY_ALIASES",
    "normalize_country_name",
    "country_code",
    "to_country_code",
    "country_name_by_code",
]

_ALIASES_BY_CODE: Mapping[str, Tuple[str, ...]] = MappingProxyType({
    "TR": ("turkey", "türkiye", "turkiye", "tr", "tur"),
    "SA": ("saudi arabia", "saudi", "sa", "sau", "ksa", "kingdom of saudi arabia", "suudi arabistan"),
    "EG": ("egypt", "eg", "egy", "mısır", "misir"),
    "IR": ("iran", "ir", "irn", "islamic republic of iran"),
    "PK": ("pakistan", "pk", "pak"),
    "IN": ("india", "in", "ind", "hindistan"),
    "BD": ("bangladesh", "bd", "bgd", "bengaldeş"),
    "ID": ("indonesia", "id", "idn", "endonezya"),
    "MY": ("malaysia", "my", "mys", "malezya"),
    "SG": ("singapore", "sg", "sgp", "singapur"),
    "US": ("united states", "united states of america", "usa", "us", "america", "abd", "amerika"),
    "CA": ("canada", "ca", "can", "kanada"),
    "GB": ("united kingdom", "uk", "gb", "gbr", "britain", "great britain", "england", "ingiltere"),
    "DE": ("germany", "de", "deu", "deutschland", "almanya"),
    "FR": ("france", "fr", "fra", "fransa"),
    "NL": ("netherlands", "nl", "nld", "holland", "hollanda"),
    "BE": ("belgium", "be", "bel", "belçika"),
    "CH": ("switzerland", "ch", "che", "isviçre"),
    "QA": ("qatar", "qa", "qat", "katar"),
    "AE": ("united arab emirates", "uae", "ae", "are", "birlesik arap emirlikleri",
           "birleşik arap emirlikleri", "dubai", "abu dhabi"),
    "KW": ("kuwait", "kw", "kwt", "kuveyt"),
    "BH": ("bahrain", "bh", "bhr", "bahreyn"),
    "OM": ("oman", "om", "omn", "umman"),
    "JO": ("jordan", "jo", "jor", "ürdün"),
    "PS": ("palestine", "ps", "pse", "filistin"),
    "IQ": ("iraq", "iq", "irq", "irak"),
    "SY": ("syria", "sy", "syr", "suriye"),
    "LB": ("lebanon", "lb", "lbn", "lübnan"),
    "MA": ("morocco", "ma", "mar", "fas"),
    "DZ": ("algeria", "dz", "dza", "cezayir"),
    "TN": ("tunisia", "tn", "tun", "tunus"),
    "LY": ("libya", "ly", "lby"),
    "SD": ("sudan", "sd", "sdn"),
    "RU": ("russia", "ru", "rus", "russian federation", "rusya"),
    "KZ": ("kazakhstan", "kz", "kaz", "kazakistan"),
    "UZ": ("uzbekistan", "uz", "uzb", "özbekistan"),
    "AZ": ("azerbaijan", "az", "aze", "azerbaycan"),
    "AF": ("afghanistan", "af", "afg", "afganistan"),
    "BA": ("bosnia", "bosnia and herzegovina", "ba", "bih", "bosna", "bosna hersek"),
    "AL": ("albania", "al", "alb", "arnavutluk"),
    "XK": ("kosovo", "xk", "kosova"),
    "MK": ("north macedonia", "macedonia", "mk", "mkd", "makedonya"),
    "NG": ("nigeria", "ng", "nga", "nijerya"),
    "ZA": ("south africa", "za", "zaf", "güney afrika"),
    "KE": ("kenya", "ke", "ken"),
    "SE": ("sweden", "se", "swe", "isveç"),
    "NO": ("norway", "no", "nor", "norveç"),
    "DK": ("denmark", "dk", "dnk", "danimarka"),
    "FI": ("finland", "fi", "fin", "fillandiya"),
    "IT": ("italy", "it", "ita", "italya"),
    "ES": ("spain", "es", "esp", "ispanya"),
    "PT": ("portugal", "pt", "prt", "portekiz"),
    "GR": ("greece", "gr", "grc", "yunanistan"),
    "AU": ("australia", "au", "aus", "avustralya"),
    "NZ": ("new zealand", "nz", "nzl", "yeni zelanda"),
})

COUNTRY_ALIASES: Mapping[str, str] = MappingProxyType({
    alias: code for code, aliases in _ALIASES_BY_CODE.items() for alias in aliases
})


def normalize_country_name(name: Any) -> str:
    if not name:
        return ""
    return str(name).strip().lower()


def country_code(name: Any) -> Optional[str]:
    """ISO code for a known alias, else None."""
    return COUNTRY_ALIASES.get(normalize_country_name(name))


def to_country_code(country: Any) -> Optional[str]:
    """Known alias -> its code; anything else is taken as a code and upper-cased."""
    if not country or not str(country).strip():
        return None
    return country_code(country) or str(country).strip().upper()


def country_name_by_code(code: Any) -> Optional[str]:
    if not code:
        return None
    for alias in _ALIASES_BY_CODE.get(str(code).strip().upper(), ()):
        if len(alias) > 2:
            return alias[0].upper() + alias[1:]
    return None

