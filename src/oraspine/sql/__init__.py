"""SQL text processing: lexing, rewriting, naming and value encoding.

Architecture::

    lexer.py             MaskedQuery: literals and comments masked out once
    reserved.py          Oracle reserved words and the escaping helpers
    long_identifiers.py  LongIdentifierRegistry (names over the limit → L#<id>)
    rewriter.py          DialectRewriter: the fixed-order stage pipeline
    arguments.py         Array-valued bind expansion, IN-list splitting
    codec.py             ValueCodec + BlobStore (sentinel, blob indirection)
    pagination.py        ROWNUM / OFFSET-FETCH range queries
"""
