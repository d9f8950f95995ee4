# --- Global log sanitizer: HTML error pages and bearer tokens -------------------
import logging, re

_HTML_SIG_RE = re.compile(r'(?is)<!DOCTYPE html|<html[^>]*>')
_TITLE_RE    = re.compile(r'(?is)<title[^>]*>(.*?)</title>')
_TAG_RE      = re.compile(r'(?is)<[^>]+>')
_SCRIPT_RE   = re.compile(r'(?is)<(script|style)[^>]*>.*?</\1>')
_BEARER_RE   = re.compile(r'(?i)(bearer\s+)([A-Za-z0-9\-_.~+/=]+)')

def _strip_tags(s: str) -> str:
    s = _SCRIPT_RE.sub('', s)
    s = _TAG_RE.sub(' ', s)
    return re.sub(r'\s+', ' ', s).strip()

def _summarize_html(s: str, limit: int = 200) -> str:
    title = None
    m = _TITLE_RE.search(s)
    if m:
        title = _strip_tags(m.group(1))
    preview = title or _strip_tags(s)[:limit]
    return f"{preview} [HTML {len(s)} chars trimmed]"

def mask_token(token: str | None, keep: int = 4) -> str:
    """'eyJhbGciOi...XYZ1' style preview; never the whole token."""
    if not token:
        return ""
    if len(token) <= keep * 2:
        return "*" * len(token)
    return f"{token[:keep]}...{token[-keep:]}"

def _mask_bearer(s: str) -> str:
    return _BEARER_RE.sub(lambda m: m.group(1) + mask_token(m.group(2)), s)

def summarize_body(text: str | None, limit: int = 200) -> str:
    """Short, log-safe rendering of a remote response body."""
    if not text:
        return ""
    if _HTML_SIG_RE.search(text):
        return _summarize_html(text, limit)
    return text[:limit]

class _HtmlTrimFilter(logging.Filter):
    """If a log message contains a large HTML blob, replace it with a short summary.
    Bearer tokens are masked in every message."""
    def filter(self, record: logging.LogRecord) -> bool:
        try:
            msg = record.getMessage()
        except (TypeError, ValueError):
            return True
        if not isinstance(msg, str):
            return True
        changed = msg
        if len(changed) > 200 and _HTML_SIG_RE.search(changed):
            changed = _summarize_html(changed)
        changed = _mask_bearer(changed)
        if changed != msg:
            record.msg = changed
            record.args = ()
        return True

def install_log_filters(names=("", "uvicorn", "uvicorn.error")) -> None:
    """Install once on common loggers (root + uvicorn family)."""
    for _name in names:
        lg = logging.getLogger(_name)
        if not any(isinstance(f, _HtmlTrimFilter) for f in lg.filters):
            lg.addFilter(_HtmlTrimFilter())

install_log_filters()
# --------------------------------------------------------------------------------
