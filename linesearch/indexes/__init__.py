# linesearch/indexes/__init__.py
from .word_index import WordIndex, normalize_word, tokenize

__all__ = ['WordIndex', 'normalize_word', 'tokenize']
