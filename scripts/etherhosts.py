#!/usr/bin/env python3
"""Create ``hosts`` and ``ethers`` files from a CSV host inventory.

The input CSV must start with a header row naming at least the columns
``ipaddr``, ``hostname`` and ``macaddr`` (in any order, extra columns are
ignored). Every following row produces up to two output lines::

    hosts:   <ipaddr> <hostname>
    ethers:  <macaddr> <ipaddr>

Rows with a missing or malformed IP address are skipped entirely. Blank
hostnames or MAC addresses are simply left out, malformed ones are reported
and left out. MAC addresses are normalised to lowercase ``aa:bb:cc:dd:ee:ff``.

Default paths can be overridden on the command line or through an optional
YAML file (``etherhosts.yml`` in the current directory, or ``--config``)::

    input: etherhosts.csv
    hosts: hosts
    ethers: ethers
"""

from __future__ import annotations

import argparse
import re
import sys
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Callable, Dict, List, Pattern, Tuple

import yaml

CONSOLE_SEPARATOR = "--------------------------------------------"

BANNER = "Etherhosts: Create hosts and ethers files from CSV"
USAGE_LINE = "Usage: etherhosts [etherhosts.csv] [hosts] [ethers]"

DEFAULT_CONFIG_NAME = "etherhosts.yml"
DEFAULT_INPUT = "etherhosts.csv"
DEFAULT_HOSTS = "hosts"
DEFAULT_ETHERS = "ethers"

IPADDR_COLUMN = "ipaddr"
HOSTNAME_COLUMN = "hostname"
MACADDR_COLUMN = "macaddr"
REQUIRED_COLUMNS: List[str] = [IPADDR_COLUMN, HOSTNAME_COLUMN, MACADDR_COLUMN]

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S %Z"

OCTET = r"(?:25[0-5]|(?:2[0-4]|1[0-9]|[1-9]|)[0-9])"
IPADDR_PATTERN = re.compile(rf"(?:{OCTET}\.){{3}}{OCTET}")
MACADDR_PATTERN = re.compile(r"[a-f0-9]{2}(?::[a-f0-9]{2}){5}")
HOSTNAME_PATTERN = re.compile(r"[a-zA-Z0-9. -]*")


class FieldStatus(Enum):
    VALID = "valid"
    ABSENT = "absent"
    INVALID = "invalid"


@dataclass(frozen=True)
class FieldResult:
    status: FieldStatus
    value: str = ""
    reason: str = ""

    @property
    def ok(self) -> bool:
        return self.status is FieldStatus.VALID


def _identity(value: str) -> str:
    return value


def normalise_macaddr(value: str) -> str:
    return value.replace("-", ":").lower()


@dataclass(frozen=True)
class FieldRule:
    """Trim, normalise and validate one inventory cell.

    ``allow_absent`` decides whether a blank cell is an expected gap
    (``ABSENT``) or an error (``INVALID``).
    """

    name: str
    pattern: Pattern[str]
    allow_absent: bool = True
    normalise: Callable[[str], str] = _identity

    def clean(self, raw: str) -> FieldResult:
        value = (raw or "").strip()
        if not value and self.allow_absent:
            return FieldResult(FieldStatus.ABSENT)

        value = self.normalise(value)
        if value and self.pattern.fullmatch(value):
            return FieldResult(FieldStatus.VALID, value=value)

        return FieldResult(FieldStatus.INVALID, reason=f"{self.name} failed regex check")


IPADDR_RULE = FieldRule(IPADDR_COLUMN, IPADDR_PATTERN, allow_absent=False)
MACADDR_RULE = FieldRule(MACADDR_COLUMN, MACADDR_PATTERN, normalise=normalise_macaddr)
HOSTNAME_RULE = FieldRule(HOSTNAME_COLUMN, HOSTNAME_PATTERN)


def clean_ipaddr(raw: str) -> FieldResult:
    return IPADDR_RULE.clean(raw)


def clean_macaddr(raw: str) -> FieldResult:
    return MACADDR_RULE.clean(raw)


def clean_hostname(raw: str) -> FieldResult:
    return HOSTNAME_RULE.clean(raw)


def split_csv_line(line: str) -> List[str]:
    """Split a single CSV line into cells.

    Commas inside double quotes are kept, and ``""`` always yields a literal
    quote character, inside or outside a quoted section. An unclosed quote
    runs to the end of the line. Multi-line cells are not supported.
    """

    cells: List[str] = []
    cell: List[str] = []
    quoted = False
    index = 0
    length = len(line)

    while index < length:
        char = line[index]
        if char == '"':
            if index + 1 < length and line[index + 1] == '"':
                cell.append('"')
                index += 2
                continue
            quoted = not quoted
        elif char == "," and not quoted:
            cells.append("".join(cell))
            cell = []
        else:
            cell.append(char)
        index += 1

    cells.append("".join(cell))
    return cells


@dataclass(frozen=True)
class ColumnMapping:
    ipaddr: int
    hostname: int
    macaddr: int

    @property
    def width(self) -> int:
        return max(self.ipaddr, self.hostname, self.macaddr) + 1


def resolve_columns(header: List[str]) -> Tuple[ColumnMapping | None, List[str]]:
    """Return the column mapping for *header* and the missing column names.

    Names must match exactly. When a name is repeated the last column wins.
    """

    positions: Dict[str, int] = {}
    for index, name in enumerate(header):
        if name in REQUIRED_COLUMNS:
            positions[name] = index

    missing = [name for name in REQUIRED_COLUMNS if name not in positions]
    if missing:
        return None, missing

    mapping = ColumnMapping(
        ipaddr=positions[IPADDR_COLUMN],
        hostname=positions[HOSTNAME_COLUMN],
        macaddr=positions[MACADDR_COLUMN],
    )
    return mapping, []


@dataclass(frozen=True)
class Diagnostic:
    line: int
    field: str
    kind: str
    message: str


@dataclass
class ConversionResult:
    hosts_text: str
    ethers_text: str
    diagnostics: List[Diagnostic] = field(default_factory=list)
    hosts_count: int = 0
    ethers_count: int = 0
    skipped_rows: int = 0


class HeaderError(ValueError):
    """Raised when the header row cannot be used to locate the columns."""

    def __init__(self, message: str, missing: List[str] | None = None) -> None:
        super().__init__(message)
        self.missing = missing or []


def split_input_lines(text: str) -> List[str]:
    """Split *text* at ``\\n`` only, dropping one trailing ``\\r`` per line.

    Other line-break characters (form feed, ``\\u2028`` and so on) stay inside
    their cell. A final newline does not produce an extra empty line.
    """

    if not text:
        return []

    lines = text.split("\n")
    if lines[-1] == "":
        lines.pop()
    return [line[:-1] if line.endswith("\r") else line for line in lines]


def format_timestamp(now: datetime | None = None) -> str:
    moment = now if now is not None else datetime.now()
    return moment.astimezone().strftime(TIMESTAMP_FORMAT)


def header_comment(kind: str, timestamp: str) -> str:
    return f"# {kind} automatically generated by etherhosts {timestamp}\n"


def convert_text(text: str, *, timestamp: str | None = None) -> ConversionResult:
    """Convert CSV *text* into hosts and ethers file contents.

    Nothing is printed; per-row problems are returned as ``Diagnostic``
    records in line order. ``HeaderError`` is raised when the input has no
    header or the header lacks a required column.
    """

    lines = split_input_lines(text)
    if not lines:
        raise HeaderError("Input file is empty")

    mapping, missing = resolve_columns(split_csv_line(lines[0]))
    if mapping is None:
        raise HeaderError(
            "Couldn't find all the headers: " + ", ".join(REQUIRED_COLUMNS),
            missing=missing,
        )

    stamp = timestamp if timestamp is not None else format_timestamp()
    hosts_lines = [header_comment("hosts", stamp)]
    ethers_lines = [header_comment("ethers", stamp)]
    result = ConversionResult(hosts_text="", ethers_text="")

    for row_index, line in enumerate(lines[1:]):
        line_number = row_index + 2
        cells = split_csv_line(line)

        if len(cells) < mapping.width:
            result.skipped_rows += 1
            result.diagnostics.append(
                Diagnostic(
                    line_number,
                    "row",
                    "skipped",
                    f"skipping line {line_number}: expected at least "
                    f"{mapping.width} columns, found {len(cells)}",
                )
            )
            continue

        ipaddr = clean_ipaddr(cells[mapping.ipaddr])
        if not ipaddr.ok:
            result.skipped_rows += 1
            result.diagnostics.append(
                Diagnostic(
                    line_number,
                    IPADDR_COLUMN,
                    "skipped",
                    f"skipping line {line_number}: {ipaddr.reason}",
                )
            )
            continue

        hostname = clean_hostname(cells[mapping.hostname])
        if hostname.ok:
            hosts_lines.append(f"{ipaddr.value} {hostname.value}\n")
            result.hosts_count += 1
        elif hostname.status is FieldStatus.INVALID:
            result.diagnostics.append(
                Diagnostic(
                    line_number,
                    HOSTNAME_COLUMN,
                    "invalid",
                    f"invalid hostname on line {line_number}: {hostname.reason}",
                )
            )

        macaddr = clean_macaddr(cells[mapping.macaddr])
        if macaddr.ok:
            ethers_lines.append(f"{macaddr.value} {ipaddr.value}\n")
            result.ethers_count += 1
        elif macaddr.status is FieldStatus.INVALID:
            result.diagnostics.append(
                Diagnostic(
                    line_number,
                    MACADDR_COLUMN,
                    "invalid",
                    f"invalid macaddr on line {line_number}: {macaddr.reason}",
                )
            )

    result.hosts_text = "".join(hosts_lines)
    result.ethers_text = "".join(ethers_lines)
    return result


@dataclass
class EtherhostsConfig:
    input: str = DEFAULT_INPUT
    hosts: str = DEFAULT_HOSTS
    ethers: str = DEFAULT_ETHERS
    label: str = ""


CONFIG_KEYS = ("input", "hosts", "ethers")


def load_config(config_path: Path, *, required: bool = False) -> EtherhostsConfig:
    """Load default paths from the YAML file at *config_path*.

    A missing file silently yields the built-in defaults unless *required*
    is set. Broken files are reported and the defaults are used instead.
    """

    config_label = config_path.as_posix()

    if not config_path.exists():
        if required:
            print(f"⚠️ Config file {config_label} not found, using defaults")
        return EtherhostsConfig()

    try:
        with config_path.open("r", encoding="utf-8") as handle:
            data = yaml.safe_load(handle) or {}
    except OSError as exc:
        print(f"⚠️ Unable to read {config_label}: {exc}")
        return EtherhostsConfig()
    except yaml.YAMLError as exc:
        print(f"⚠️ Unable to parse {config_label}: {exc}")
        return EtherhostsConfig()

    if not isinstance(data, dict):
        print(f"⚠️ Invalid structure in {config_label}, using defaults")
        return EtherhostsConfig()

    config = EtherhostsConfig(label=config_label)

    unknown = sorted(str(key) for key in data if key not in CONFIG_KEYS)
    if unknown:
        print(f"⚠️ Unknown keys in {config_label} ignored: {', '.join(unknown)}")

    for key in CONFIG_KEYS:
        value = data.get(key)
        if value is None:
            continue
        if not isinstance(value, str) or not value.strip():
            print(f"⚠️ Invalid value for '{key}' in {config_label}, using default")
            continue
        setattr(config, key, value.strip())

    return config


def read_input(input_path: Path) -> str:
    try:
        with input_path.open("r", encoding="utf-8-sig") as handle:
            return handle.read()
    except (OSError, UnicodeDecodeError) as exc:
        raise OSError(f"Unable to open input file {input_path}: {exc}") from exc


def write_output(output_path: Path, content: str, label: str) -> bool:
    try:
        with output_path.open("w", encoding="utf-8") as handle:
            handle.write(content)
    except OSError as exc:
        print(f"⚠️ Unable to write to {label} file {output_path}: {exc}")
        return False

    print(f"📁 Written {label} file: {output_path}")
    return True


def run_conversion(input_path: Path, hosts_path: Path, ethers_path: Path) -> int:
    print(BANNER)
    print(USAGE_LINE)

    try:
        text = read_input(input_path)
    except OSError as exc:
        print(f"❌ {exc}")
        return 1

    try:
        result = convert_text(text)
    except HeaderError as exc:
        print(f"❌ {exc}")
        if exc.missing:
            print(f"   • Missing: {', '.join(exc.missing)}")
        return 1

    print(f"Input csv:     {input_path}")
    print(f"Output hosts:  {hosts_path}")
    print(f"Output ethers: {ethers_path}")

    for diagnostic in result.diagnostics:
        print(f"⚠️ {diagnostic.message}")

    hosts_written = write_output(hosts_path, result.hosts_text, "hosts")
    ethers_written = write_output(ethers_path, result.ethers_text, "ethers")

    print(f"✅ Hosts entries: {result.hosts_count}")
    print(f"✅ Ethers entries: {result.ethers_count}")
    if result.skipped_rows:
        print(f"⚠️ Skipped rows: {result.skipped_rows}")
    if not (hosts_written and ethers_written):
        print("⚠️ Conversion finished with write errors.")
    print(CONSOLE_SEPARATOR)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="etherhosts",
        description="Create hosts and ethers files from a CSV inventory",
        epilog="Use -- before file names that start with '-'.",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help=f"YAML file with default paths (default: ./{DEFAULT_CONFIG_NAME} if present)",
    )
    parser.add_argument("input", nargs="?", help=f"input CSV (default: {DEFAULT_INPUT})")
    parser.add_argument("hosts", nargs="?", help=f"hosts output (default: {DEFAULT_HOSTS})")
    parser.add_argument("ethers", nargs="?", help=f"ethers output (default: {DEFAULT_ETHERS})")
    return parser


def main(argv: List[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.config is not None:
        config = load_config(args.config, required=True)
    else:
        config = load_config(Path(DEFAULT_CONFIG_NAME))

    if config.label:
        print(f"🔧 Using config file: {config.label}")

    input_path = Path(args.input or config.input)
    hosts_path = Path(args.hosts or config.hosts)
    ethers_path = Path(args.ethers or config.ethers)

    return run_conversion(input_path, hosts_path, ethers_path)


if __name__ == "__main__":
    sys.exit(main())
