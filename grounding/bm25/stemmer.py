"""
Stemmers for BM25 text processing.

Two stemmers are available:

- "suffix" (default): ordered suffix stripping tuned for source code, where most
  terms are method names, CSS classes and technical words. The first matching
  suffix in SUFFIX_RULES wins, and a suffix is only stripped when the remaining
  stem keeps at least 3 characters. Words shorter than 4 characters are
  returned unchanged.

- "snowball": NLTK's English Snowball stemmer (Porter2). Better for prose-heavy
  corpora such as documentation or test data descriptions.

Examples (suffix):
- "locators" → "locator"
- "clicking" → "click"
- "navigation" → "navigate"
- "entries" → "entry"
"""

from typing import Callable, Dict

# (suffix, replacement), longest / most specific first
SUFFIX_RULES = (
    ('ational', 'ate'), ('tional', 'tion'), ('ation', 'ate'),
    ('iness', 'i'), ('ness', ''), ('ment', ''),
    ('ible', ''), ('able', ''), ('ful', ''),
    ('ous', ''), ('ive', ''), ('ing', ''),
    ('tion', ''), ('sion', ''), ('ies', 'y'),
    ('ally', 'al'), ('ence', ''), ('ance', ''),
    ('ed', ''), ('er', ''), ('ly', ''),
    ('es', ''), ('s', ''),
)

MIN_STEM_LENGTH = 3

_snowball = None


def stem(word: str) -> str:
    """
    Strip the first matching suffix from a lowercase word.
    
    Args:
        word: Lowercase word to stem
        
    Returns:
        Stemmed word
        
    Examples:
        >>> stem("locators")
        'locator'
        >>> stem("clicking")
        'click'
        >>> stem("qa")
        'qa'
    """
    if len(word) < 4:
        return word
    
    for suffix, replacement in SUFFIX_RULES:
        if word.endswith(suffix) and len(word) - len(suffix) + len(replacement) >= MIN_STEM_LENGTH:
            return word[:-len(suffix)] + replacement
    
    return word


def snowball_stem(word: str) -> str:
    """Stem a single word using NLTK's English Snowball algorithm."""
    global _snowball
    if _snowball is None:
        # Lazy import to avoid loading NLTK unless selected
        from nltk.stem.snowball import SnowballStemmer
        _snowball = SnowballStemmer('english')
    return _snowball.stem(word)


STEMMERS: Dict[str, Callable[[str], str]] = {
    "suffix": stem,
    "snowball": snowball_stem,
}


def get_stemmer(name: str) -> Callable[[str], str]:
    """
    Resolve a stemmer by name.
    
    Raises:
        ValueError: If the name is not a known stemmer
    """
    try:
        return STEMMERS[name]
    except KeyError:
        raise ValueError(
            f"Unknown stemmer: {name}. Valid options: {', '.join(STEMMERS)}"
        ) from None
