# emailqa/url_canonicalizer.py
from typing import Iterable, Optional
from urllib.parse import SplitResult, unquote_plus, urlsplit, urlunsplit

from .rules import TRACKING_PARAMS

DEFAULT_PORTS = {"http": 80, "https": 443}


def _split(url: str) -> Optional[SplitResult]:
    """Разбирает абсолютный URL. Для относительных и битых адресов возвращает None."""
    try:
        parts = urlsplit(url.strip())
        parts.port  # ValueError на нечисловом или слишком большом порте
    except ValueError:
        return None
    if not parts.scheme or not parts.netloc:
        return None
    return parts


def _fallback(url: str) -> str:
    return url.strip().lower().rstrip("/")


def is_tracking_param(name: str, tracking_params: Iterable[str] = TRACKING_PARAMS) -> bool:
    """Совпадает ли имя параметра (или его начало) с трекинговым, без учета регистра."""
    lower = name.lower()
    return any(lower.startswith(param.lower()) for param in tracking_params)


def _strip_query(query: str, tracking_params: Iterable[str]) -> str:
    # Оставшиеся пары сохраняются в исходной кодировке и порядке
    kept = []
    for pair in query.split("&"):
        if not pair:
            continue
        name = unquote_plus(pair.split("=", 1)[0])
        if is_tracking_param(name, tracking_params):
            continue
        kept.append(pair)
    return "&".join(kept)


def canonicalize(url: str, tracking_params: Iterable[str] = TRACKING_PARAMS) -> str:
    """
    Убирает из URL трекинговые параметры, сохраняя остальные.
    Схема и хост приводятся к нижнему регистру, путь, оставшийся query и фрагмент не меняются.
    Никогда не падает: неразбираемый URL возвращается в нижнем регистре без завершающего слэша.
    """
    parts = _split(url)
    if parts is None:
        return _fallback(url)

    userinfo, at, hostport = parts.netloc.rpartition("@")
    netloc = f"{userinfo}{at}{hostport.lower()}"
    path = parts.path
    if not path and parts.scheme.lower() in DEFAULT_PORTS:
        path = "/"
    query = _strip_query(parts.query, tuple(tracking_params))
    return urlunsplit((parts.scheme.lower(), netloc, path, query, parts.fragment))


def comparison_key(url: str) -> str:
    """
    Строгая форма для сравнения двух адресов: origin в нижнем регистре + путь
    без завершающего слэша. Query и фрагмент отбрасываются целиком.
    """
    parts = _split(url)
    if parts is None:
        fallback = url.strip().lower()
        return fallback[:-1] if fallback.endswith("/") else fallback

    scheme = parts.scheme.lower()
    host = parts.hostname or ""
    if ":" in host:
        host = f"[{host}]"
    port = parts.port
    origin = f"{scheme}://{host}"
    if port and port != DEFAULT_PORTS.get(scheme):
        origin += f":{port}"

    path = parts.path or "/"
    if path.endswith("/"):
        path = path[:-1]
    return origin + path
