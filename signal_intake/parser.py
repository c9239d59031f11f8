"""Template parser turning pump-signal messages into trading signals."""

from __future__ import annotations

from typing import Optional
from urllib.parse import SplitResult, urlsplit

from .models import InboundMessage, ParsedSignal, TemplateRule

_LINK_TRIM_CHARS = " \t\n\r,.;!"


class ParseError(ValueError):
    """Message does not match the configured template."""

    code = "parse_error"


class EmptyMessage(ParseError):
    code = "empty_message"

    def __init__(self) -> None:
        super().__init__("empty message body")


class MissingTemplateToken(ParseError):
    code = "missing_template_token"

    def __init__(self, token: str) -> None:
        super().__init__(f"required template token missing: {token}")
        self.token = token


class LinkMissing(ParseError):
    code = "link_missing"

    def __init__(self) -> None:
        super().__init__("signal link missing")


class SymbolUnresolvable(ParseError):
    code = "symbol_unresolvable"

    def __init__(self, detail: str = "") -> None:
        message = "unable to resolve symbol from link"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class InvalidSeparatorConfig(ParseError):
    code = "invalid_separator_config"

    def __init__(self) -> None:
        super().__init__("invalid pair separator")


class SeparatorNotFound(ParseError):
    code = "separator_not_found"

    def __init__(self, separator: str, pair: str) -> None:
        super().__init__(f"pair does not contain separator {separator!r}: {pair}")
        self.separator = separator
        self.pair = pair


class TemplateParser:
    """Validates messages against a :class:`TemplateRule` and extracts the traded pair.

    The parser holds no mutable state, so one instance can be shared between
    worker threads.
    """

    def __init__(self, rule: TemplateRule) -> None:
        self._rule = rule

    @property
    def rule(self) -> TemplateRule:
        return self._rule

    def parse(self, message: InboundMessage) -> ParsedSignal:
        """Return the parsed signal or raise a :class:`ParseError` subclass."""
        text = message.text.strip()
        if not text:
            raise EmptyMessage()

        self._require_tokens(text)
        link = self._extract_link(text)
        pair_code = self._resolve_pair(link)

        separator = self._rule.pair_separator
        symbol = pair_code.replace(separator, "")
        if not symbol:
            raise SymbolUnresolvable(pair_code)

        return ParsedSignal(symbol=symbol, pair_code=pair_code, message=message)

    def _require_tokens(self, text: str) -> None:
        for token in self._rule.required_tokens:
            if token not in text:
                raise MissingTemplateToken(token)

    def _extract_link(self, text: str) -> SplitResult:
        host = self._rule.link_host.lower()
        for segment in text.split():
            if "://" not in segment:
                continue
            link = _parse_url(segment.strip(_LINK_TRIM_CHARS))
            if link is None:
                continue
            if _authority(link).lower() != host:
                continue
            if not link.path.startswith(self._rule.link_path_prefix):
                continue
            return link
        raise LinkMissing()

    def _resolve_pair(self, link: SplitResult) -> str:
        raw = link.path[len(self._rule.link_path_prefix):].strip("/")
        if not raw:
            raise SymbolUnresolvable()

        separator = self._rule.pair_separator
        if not separator:
            raise InvalidSeparatorConfig()

        # Some links carry a hyphen or an encoded underscore instead of the separator.
        normalized = raw.replace("-", separator).replace("%5F", separator).replace("%5f", separator)
        if separator not in normalized:
            raise SeparatorNotFound(separator, normalized.upper())
        # Uppercase the legs only; the separator is kept exactly as configured.
        return separator.join(part.upper() for part in normalized.split(separator))


def _parse_url(candidate: str) -> Optional[SplitResult]:
    try:
        return urlsplit(candidate)
    except ValueError:
        return None


def _authority(link: SplitResult) -> str:
    # Drop userinfo; host and port are compared as written.
    return link.netloc.rsplit("@", 1)[-1]
