from collections.abc import Iterable, Mapping, Sequence

HeaderMap = Mapping[str, Sequence[str]]


def canonical_key(name: str) -> str:
    """Canonical MIME form: ``x-github-event`` -> ``X-Github-Event``."""
    return "-".join(part[:1].upper() + part[1:].lower() for part in name.split("-"))


def collect(items: Iterable[tuple[str, str]]) -> dict[str, list[str]]:
    """Group raw header pairs under canonical names, keeping value order."""
    headers: dict[str, list[str]] = {}
    for name, value in items:
        headers.setdefault(canonical_key(name), []).append(value)
    return headers


def first(headers: HeaderMap, name: str) -> str | None:
    """First value of ``name`` regardless of how the key was cased."""
    values = headers.get(canonical_key(name))
    if values is None:
        wanted = name.lower()
        for key, candidate in headers.items():
            if key.lower() == wanted:
                values = candidate
                break
    if values is None:
        return None
    return values[0] if values else ""


def without(headers: HeaderMap, *names: str) -> dict[str, list[str]]:
    dropped = {n.lower() for n in names}
    return {k: list(v) for k, v in headers.items() if k.lower() not in dropped}


SENSITIVE = frozenset({"authorization", "cookie", "x-hub-signature", "x-hub-signature-256"})


def redacted(headers: Mapping[str, object]) -> dict[str, object]:
    """Copy of ``headers`` safe to write to logs."""
    return {k: "***REDACTED***" if k.lower() in SENSITIVE else v for k, v in headers.items()}
