"""
Print the signature headers GitHub would send for a webhook body.

Usage:
    python sign.py <body_file> <secret>

Pair with curl to replay a payload against a local receiver:
    curl -X POST localhost:8000/ --data-binary @body.json \
        -H "User-Agent: GitHub-Hookshot/test" -H "X-Github-Event: push" \
        -H "X-Hub-Signature-256: $(python sign.py body.json secret | head -1 | cut -d' ' -f2)"
"""

import sys
from pathlib import Path

from fourkeys.services.signature import SCHEMES, compute


def signature_headers(body: bytes, secret: str) -> dict[str, str]:
    return {scheme.header: compute(secret, body, scheme) for scheme in SCHEMES}


if __name__ == "__main__":
    if len(sys.argv) != 3:
        print("Usage: python sign.py <body_file> <secret>")
        sys.exit(1)

    body = Path(sys.argv[1]).read_bytes()
    for header, value in signature_headers(body, sys.argv[2]).items():
        print(f"{header}: {value}")
