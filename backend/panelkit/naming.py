"""
panelkit/naming.py

Naming strategy - pure string transformations from a resource's declared
name to its model identifier, model label and URL slug.

Pluralisation is a per-locale strategy registry. English is registered by
default; locales without a pluralizer keep labels singular. Slugs always use
the English pluralizer so they stay stable whatever the active locale is.
"""
import re
import threading
import unicodedata
from typing import Callable, Dict, List, Optional

Pluralizer = Callable[[str], str]

RESOURCE_SUFFIX = "Resource"

_WORD_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")
_WORD_SEPARATORS = re.compile(r"[\s_\-]+")
_LAST_WORD = re.compile(r"([A-Z]{2,}|[A-Z]?[a-z0-9]+|[A-Z])$")
_NON_SLUG = re.compile(r"[^a-z0-9]+")


# ============== String helpers ==============

def class_basename(name: str) -> str:
    """``app.admin.PostResource`` -> ``PostResource``"""
    return name.rsplit(".", 1)[-1]


def before_last(value: str, search: str) -> str:
    """Everything before the last occurrence of ``search`` (whole value if absent)"""
    if not search:
        return value
    index = value.rfind(search)
    return value if index == -1 else value[:index]


def after_last(value: str, search: str) -> str:
    """Everything after the last occurrence of ``search`` (whole value if absent)"""
    if not search:
        return value
    index = value.rfind(search)
    return value if index == -1 else value[index + len(search):]


def split_words(value: str) -> List[str]:
    """Split studly, snake, kebab and spaced text into words"""
    spaced = _WORD_BOUNDARY.sub(" ", value)
    return [word for word in _WORD_SEPARATORS.split(spaced.strip()) if word]


def snake(value: str, delimiter: str = "_") -> str:
    return delimiter.join(word.lower() for word in split_words(value))


def kebab(value: str) -> str:
    return snake(value, "-")


def headline(value: str) -> str:
    """``blog posts`` -> ``Blog Posts``"""
    return " ".join(word[:1].upper() + word[1:] for word in split_words(value))


def slugify(value: str) -> str:
    """Lower-case ASCII slug; runs of anything else collapse to ``-``"""
    ascii_value = unicodedata.normalize("NFKD", value).encode("ascii", "ignore").decode("ascii")
    return _NON_SLUG.sub("-", ascii_value.lower()).strip("-")


# ============== English pluralizer ==============

_UNCOUNTABLE = {
    "audio", "data", "deer", "equipment", "feedback", "fish", "information",
    "metadata", "money", "news", "rice", "series", "sheep", "software", "species",
}

_IRREGULAR = {
    "child": "children",
    "criterion": "criteria",
    "foot": "feet",
    "goose": "geese",
    "half": "halves",
    "knife": "knives",
    "leaf": "leaves",
    "life": "lives",
    "man": "men",
    "mouse": "mice",
    "ox": "oxen",
    "person": "people",
    "shelf": "shelves",
    "tooth": "teeth",
    "wife": "wives",
    "wolf": "wolves",
    "woman": "women",
}

_RULES = [
    (re.compile(r"(quiz)$", re.IGNORECASE), r"\1zes"),
    (re.compile(r"(matr|vert|ind)(ix|ex)$", re.IGNORECASE), r"\1ices"),
    (re.compile(r"(analy|ba|diagno|parenthe|synop|the)sis$", re.IGNORECASE), r"\1ses"),
    (re.compile(r"([^aeiouy])y$", re.IGNORECASE), r"\1ies"),
    (re.compile(r"(x|ch|ss|sh|s|z)$", re.IGNORECASE), r"\1es"),
]


def _match_case(original: str, plural: str) -> str:
    if len(original) > 1 and original.isupper():
        return plural.upper()
    if original[:1].isupper():
        return plural[:1].upper() + plural[1:]
    return plural


def _pluralize_word(word: str) -> str:
    lower = word.lower()
    if lower in _UNCOUNTABLE:
        return word
    if lower in _IRREGULAR:
        return _match_case(word, _IRREGULAR[lower])
    for pattern, replacement in _RULES:
        if pattern.search(word):
            return pattern.sub(replacement, word)
    return word + "s"


def pluralize_english(value: str) -> str:
    """Pluralise the last word only: ``BlogPost`` -> ``BlogPosts``, ``blog category`` -> ``blog categories``"""
    match = _LAST_WORD.search(value)
    if not match:
        return value
    return value[:match.start()] + _pluralize_word(match.group(1))


# ============== Pluralizer registry ==============

_pluralizers: Dict[str, Pluralizer] = {"en": pluralize_english}
_pluralizers_lock = threading.Lock()


def _locale_candidates(locale: str) -> List[str]:
    normalized = locale.replace("-", "_").lower()
    language = normalized.split("_", 1)[0]
    return [normalized] if normalized == language else [normalized, language]


def register_pluralizer(locale: str, pluralizer: Pluralizer) -> None:
    """Register the pluralizer used for ``locale`` (``fr``, ``pt_BR``, ...)"""
    with _pluralizers_lock:
        _pluralizers[locale.replace("-", "_").lower()] = pluralizer


def unregister_pluralizer(locale: str) -> None:
    with _pluralizers_lock:
        _pluralizers.pop(locale.replace("-", "_").lower(), None)


def get_pluralizer(locale: str) -> Optional[Pluralizer]:
    for candidate in _locale_candidates(locale):
        pluralizer = _pluralizers.get(candidate)
        if pluralizer is not None:
            return pluralizer
    return None


def locale_has_pluralization(locale: str) -> bool:
    return get_pluralizer(locale) is not None


def pluralize(value: str, locale: str = "en") -> str:
    """Pluralise with the locale's strategy; unchanged when the locale has none"""
    pluralizer = get_pluralizer(locale)
    return pluralizer(value) if pluralizer else value


# ============== Resource conventions ==============

def model_identifier(resource_name: str, namespace: str, suffix: str = RESOURCE_SUFFIX) -> str:
    """``app.admin.BlogPostResource`` in namespace ``app.models`` -> ``app.models.BlogPost``"""
    basename = before_last(class_basename(resource_name), suffix)
    return f"{namespace}.{basename}" if namespace else basename


def model_label(identifier: str) -> str:
    """``app.models.BlogPost`` -> ``blog post``"""
    return kebab(class_basename(identifier)).replace("-", " ")


def resource_slug(resource_name: str, namespace_segment: str = "resources", suffix: str = RESOURCE_SUFFIX) -> str:
    """
    Derive a resource slug from its declared name.

    ``BlogPostResource`` -> ``blog-posts``;
    ``app.admin.resources.shop.ProductResource`` -> ``shop/products``
    """
    marker = f".{namespace_segment}." if namespace_segment else ""
    if marker and marker in resource_name:
        name = after_last(resource_name, marker)
    else:
        name = class_basename(resource_name)

    name = pluralize_english(before_last(name, suffix))

    return "/".join(slugify(kebab(segment)) for segment in name.split("."))


__all__ = [
    "Pluralizer",
    "class_basename",
    "before_last",
    "after_last",
    "split_words",
    "snake",
    "kebab",
    "headline",
    "slugify",
    "pluralize_english",
    "register_pluralizer",
    "unregister_pluralizer",
    "get_pluralizer",
    "locale_has_pluralization",
    "pluralize",
    "model_identifier",
    "model_label",
    "resource_slug",
]
