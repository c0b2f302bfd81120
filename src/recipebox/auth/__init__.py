"""Token based write access."""

from recipebox.auth.tokens import (
    HmacTokenSource,
    TokenManager,
    add_token_to_file,
    ensure_tokens_file,
    generate_key,
    read_tokens_file,
    read_tokens_key_file,
    write_tokens_key_file,
)

__all__ = [
    "HmacTokenSource",
    "TokenManager",
    "add_token_to_file",
    "ensure_tokens_file",
    "generate_key",
    "read_tokens_file",
    "read_tokens_key_file",
    "write_tokens_key_file",
]
