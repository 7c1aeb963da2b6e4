"""smileyQL lexical layer."""
from smileyql.scan.tokenizer import Tokenizer

__all__ = ["Tokenizer"]
