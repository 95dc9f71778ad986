"""Parse, normalize and render the WireGuard tunnel configuration file.

Parsing goes through :mod:`configparser`; rendering walks the original lines
so comments, blank lines and ordering survive the rewrite. Every line is
stripped before parsing: WireGuard ignores indentation, so an indented
``AllowedIPs`` is an ordinary key and never a continuation of the line above.
"""

from __future__ import annotations

import configparser
from typing import List, Optional, Set, Tuple

from wgdeploy.config.defaults import DEFAULT_ALLOWED_IPS, REQUIRED_SECTIONS
from wgdeploy.errors import DeploymentError
from wgdeploy.logging_utils import get_logger

LOGGER = get_logger(__name__)

PEER_SECTION = "Peer"
ALLOWED_IPS_KEY = "AllowedIPs"
ENDPOINT_KEY = "Endpoint"
COMMENT_PREFIXES = ("#", ";")


class ConfigFormatError(DeploymentError):
    """Raised when the tunnel configuration cannot be parsed or lacks a section."""


def _new_parser() -> configparser.ConfigParser:
    parser = configparser.ConfigParser(
        delimiters=("=",),
        comment_prefixes=COMMENT_PREFIXES,
        inline_comment_prefixes=None,
        strict=True,
        empty_lines_in_values=False,
        interpolation=None,
        # "[]" is not a valid header, so a literal [DEFAULT] stays an ordinary section.
        default_section="",
    )
    parser.optionxform = str  # type: ignore[assignment,method-assign]
    return parser


class TunnelConfig:
    """Sectioned key/value document backed by :class:`configparser.ConfigParser`.

    ``lines`` is the stripped source text; :meth:`render` replays it so the
    rewritten file diffs cleanly against the original. Keys are case-preserving.
    """

    def __init__(self, parser: configparser.ConfigParser, lines: Optional[List[str]] = None):
        self._parser = parser
        self._lines = list(lines or [])

    def sections(self) -> List[str]:
        return self._parser.sections()

    def has_section(self, section: str) -> bool:
        return self._parser.has_section(section)

    def items(self, section: str) -> List[Tuple[str, str]]:
        return [(key, self._parser.get(section, key)) for key in self._parser.options(section)]

    def get(self, section: str, key: str) -> Optional[str]:
        return self._parser.get(section, key, fallback=None)

    def set(self, section: str, key: str, value: str) -> None:
        """Set ``key`` in ``section``, replacing any differently-cased spelling in place."""

        current = self._parser.options(section)
        matches = [name for name in current if name.lower() == key.lower()]
        if not matches or matches == [key]:
            self._parser.set(section, key, value)
            return

        items = self.items(section)
        for name, _ in items:
            self._parser.remove_option(section, name)
        replaced = False
        for name, old_value in items:
            if name not in matches:
                self._parser.set(section, name, old_value)
            elif not replaced:
                self._parser.set(section, key, value)
                replaced = True

    def _resolve_key(self, section: str, name: str, written: Set[Tuple[str, str]]) -> Optional[str]:
        options = self._parser.options(section)
        if name in options:
            candidates = [name]
        else:
            # Spelling replaced by set(); the new key takes the old line's place.
            candidates = [option for option in options if option.lower() == name.lower()]
        for key in candidates:
            if (section, key) not in written:
                return key
        return None

    def render(self) -> str:
        """Return the document as text, one ``key=value`` line per key.

        Keys without a source line (added by :meth:`set`) go after the last
        key of their section, ahead of trailing comments and blank lines.
        """

        rendered: List[str] = []
        written: Set[Tuple[str, str]] = set()
        section: Optional[str] = None
        insert_at = 0

        def add_missing() -> None:
            if section is None:
                return
            missing = [
                f"{key}={value}"
                for key, value in self.items(section)
                if (section, key) not in written
            ]
            rendered[insert_at:insert_at] = missing

        for line in self._lines:
            header = self._parser.SECTCRE.match(line)
            if header:
                add_missing()
                section = header.group("header")
                rendered.append(line)
                insert_at = len(rendered)
                continue
            if section is None or not line or line.startswith(COMMENT_PREFIXES):
                rendered.append(line)
                continue
            key = self._resolve_key(section, line.split("=", 1)[0].strip(), written)
            if key is None:
                continue
            written.add((section, key))
            rendered.append(f"{key}={self._parser.get(section, key)}")
            insert_at = len(rendered)
        add_missing()

        return "\n".join(rendered).strip("\n") + "\n"


def parse_config(text: str) -> TunnelConfig:
    """Parse ``text`` as a WireGuard configuration document."""

    lines = [line.strip() for line in text.splitlines()]
    parser = _new_parser()
    try:
        parser.read_string("\n".join(lines))
    except configparser.Error as exc:
        raise ConfigFormatError(f"Error parsing config file: {exc}") from exc
    return TunnelConfig(parser, lines)


def require_sections(config: TunnelConfig) -> None:
    for section in REQUIRED_SECTIONS:
        if not config.has_section(section):
            raise ConfigFormatError(
                f"Config file does not contain the required [{section}] section."
            )


def normalize(config: TunnelConfig, endpoint: Optional[str] = None) -> TunnelConfig:
    """Force the routed networks and, when given, the endpoint of ``[Peer]``."""

    previous = config.get(PEER_SECTION, ALLOWED_IPS_KEY)
    config.set(PEER_SECTION, ALLOWED_IPS_KEY, DEFAULT_ALLOWED_IPS)
    LOGGER.info(
        "AllowedIPs replaced",
        extra={"previous": previous, "allowed_ips": DEFAULT_ALLOWED_IPS},
    )

    if endpoint:
        config.set(PEER_SECTION, ENDPOINT_KEY, endpoint)
        LOGGER.info("Endpoint overridden", extra={"endpoint": endpoint})
    return config


def render_config(config: TunnelConfig) -> str:
    return config.render()


def normalize_text(text: str, endpoint: Optional[str] = None) -> str:
    """Parse, validate and normalize ``text``; returns the text to write back.

    Raises :class:`ConfigFormatError` before anything is written when the
    document is malformed or lacks ``[Interface]``/``[Peer]``.
    """

    config = parse_config(text)
    require_sections(config)
    normalize(config, endpoint)
    return render_config(config)
