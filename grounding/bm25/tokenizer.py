"""
Tokenizer for BM25 code search.

Tokenization pipeline:
1. Extract identifiers and split camelCase / PascalCase / snake_case into
   sub-words, keeping the whole identifier as an extra compound token
2. Extract quoted literals (selectors, test ids, visible text) plus their
   alphanumeric parts
3. Extract CSS-like `.class` / `#id` tokens
4. Extract `data-*` attribute names
5. Filter stopwords (English function words + common programming keywords)
   and tokens shorter than 2 characters
6. Apply stemming

The result keeps duplicates and order: it feeds term-frequency counting,
not a set lookup.
"""

import re
from typing import Callable, List, Optional

from .stemmer import stem as suffix_stem

# English function words plus JavaScript keywords and ubiquitous accessor verbs
STOPWORDS = frozenset([
    'the', 'a', 'an', 'is', 'it', 'in', 'on', 'at', 'to', 'for', 'of', 'and',
    'or', 'but', 'not', 'with', 'this', 'that', 'from', 'by', 'as', 'be', 'was',
    'are', 'been', 'has', 'have', 'had', 'do', 'does', 'did', 'will', 'would',
    'can', 'could', 'should', 'may', 'might', 'if', 'then', 'else', 'when',
    'up', 'out', 'so', 'no', 'we', 'he', 'she', 'they', 'you', 'i', 'my',
    'me', 'your', 'our', 'their', 'its', 'am', 'were', 'being', 'get', 'set',
    'var', 'let', 'const', 'function', 'return', 'new', 'true', 'false', 'null',
    'undefined', 'typeof', 'instanceof', 'class', 'extends', 'super', 'import',
    'export', 'default', 'require', 'module', 'exports', 'async', 'await',
    'try', 'catch', 'throw', 'finally', 'switch', 'case', 'break',
    'continue', 'while', 'each', 'map', 'filter', 'some', 'every',
])

IDENTIFIER_PATTERN = re.compile(r'[a-zA-Z_$][a-zA-Z0-9_$]*')
QUOTED_PATTERN = re.compile(r'[\'"`]([^\'"`]{2,})[\'"`]')
CSS_TOKEN_PATTERN = re.compile(r'[.#]\w[\w-]*')
DATA_ATTRIBUTE_PATTERN = re.compile(r'data-[\w-]+', re.IGNORECASE)

_LOWER_UPPER = re.compile(r'([a-z])([A-Z])')
_ACRONYM_WORD = re.compile(r'([A-Z]+)([A-Z][a-z])')
_PART_SEPARATOR = re.compile(r'[\s_]+')
_NON_ALNUM = re.compile(r'[^a-z0-9]+')

MAX_LITERAL_LENGTH = 100


def split_identifier(identifier: str) -> List[str]:
    """
    Split an identifier on camelCase, PascalCase and underscore boundaries.
    
    Examples:
        >>> split_identifier("getByRole")
        ['get', 'by', 'role']
        >>> split_identifier("HTMLButton_element")
        ['html', 'button', 'element']
    """
    spaced = _LOWER_UPPER.sub(r'\1 \2', identifier)
    spaced = _ACRONYM_WORD.sub(r'\1 \2', spaced)
    return [p for p in _PART_SEPARATOR.split(spaced.lower()) if p]


def tokenize(
    text: str,
    stem: bool = True,
    remove_stopwords: bool = True,
    preserve_compound: bool = True,
    stemmer: Optional[Callable[[str], str]] = None,
) -> List[str]:
    """
    Tokenize source-like text for BM25 scoring.
    
    Args:
        text: Raw text (code, selectors, natural language query)
        stem: Apply stemming to every token
        remove_stopwords: Drop stopwords
        preserve_compound: Keep multi-part identifiers as one extra token
        stemmer: Stemming function (default: suffix stemmer)
        
    Returns:
        Ordered list of lowercase tokens, duplicates retained
        
    Examples:
        >>> tokenize("getByRole", remove_stopwords=False, stem=False)
        ['getbyrole', 'get', 'by', 'role']
        
        >>> tokenize("page.locator('[data-qa=submit]')")
        ['page', 'locator', 'data', 'qa', 'submit', '[data-qa=submit]', 'data', 'qa', 'submit', '.locator', 'data-qa']
        
        >>> tokenize(None)
        []
    """
    if not text or not isinstance(text, str):
        return []
    
    stem_fn = stemmer or suffix_stem
    tokens: List[str] = []
    
    # 1. Identifiers with their sub-words
    for identifier in IDENTIFIER_PATTERN.findall(text):
        parts = split_identifier(identifier)
        if preserve_compound and len(parts) > 1:
            tokens.append(identifier.lower())
        tokens.extend(p for p in parts if len(p) >= 2)
    
    # 2. Quoted literals (selectors, test ids, visible text)
    for match in QUOTED_PATTERN.finditer(text):
        inner = match.group(1).lower().strip()
        if 2 <= len(inner) <= MAX_LITERAL_LENGTH:
            tokens.append(inner)
            tokens.extend(p for p in _NON_ALNUM.split(inner) if len(p) >= 2)
    
    # 3. CSS-like class / id tokens
    tokens.extend(sel.lower() for sel in CSS_TOKEN_PATTERN.findall(text))
    
    # 4. data-* attribute names
    tokens.extend(attr.lower() for attr in DATA_ATTRIBUTE_PATTERN.findall(text))
    
    processed = []
    for token in tokens:
        if remove_stopwords and token in STOPWORDS:
            continue
        if len(token) < 2:
            continue
        processed.append(stem_fn(token) if stem else token)
    
    return processed
