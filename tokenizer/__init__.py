from .tokenizer import LexicalError, Loc, MatchPolicy, Token, Tokenizer, tokenize
