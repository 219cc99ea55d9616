"""Reading the locally pinned version of a target.

A pin is either a dotted key path into a YAML or TOML mapping (e.g. a Helm
chart's ``values.yaml``) or a ``name==version`` line in a requirements file.
Besides the value, the exact text around it is captured as a template so the
update can replace precisely what was there.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any

import tomlkit
import yaml
from packaging.requirements import InvalidRequirement, Requirement
from packaging.utils import canonicalize_name
from tomlkit.exceptions import TOMLKitError

from .edits import substitution_pattern
from .models import VERSION_PLACEHOLDER, Pin, PinnedValue
from .toml import get_key_path


class PinNotFoundError(LookupError):
    """The pin file, key or requirement does not exist."""


def read_pin(pin: Pin, root: Path) -> PinnedValue:
    """Read the pinned version described by ``pin``, relative to ``root``.

    Raises:
        PinNotFoundError: If the file is missing or holds no such pin.
    """
    path = root / pin.path
    if not path.is_file():
        raise PinNotFoundError(f"Pin file not found: {pin.path}")
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise PinNotFoundError(f"Cannot read {pin.path}: {exc}") from exc

    if pin.requirement is not None:
        return _read_requirement(text, pin)
    if path.suffix == ".toml":
        return _read_toml_key(text, pin)
    return _read_yaml_key(text, pin)


def _lookup(data: Any, pin: Pin) -> str:
    try:
        value = get_key_path(data, pin.key or "")
    except KeyError:
        raise PinNotFoundError(f"Key {pin.key} not found in {pin.path}") from None
    if hasattr(value, "unwrap"):
        value = value.unwrap()
    if isinstance(value, (dict, list)) or value is None:
        raise PinNotFoundError(f"Key {pin.key} in {pin.path} is not a scalar")
    return str(value)


def _read_yaml_key(text: str, pin: Pin) -> PinnedValue:
    # BaseLoader keeps every scalar a string, so "1.10" is not read as 1.1
    try:
        data = yaml.load(text, Loader=yaml.BaseLoader)
    except yaml.YAMLError as exc:
        raise PinNotFoundError(f"Cannot parse {pin.path}: {exc}") from exc
    value = _lookup(data, pin)
    last = (pin.key or "").split(".")[-1]
    forms = [f'{last}: "{{v}}"', f"{last}: '{{v}}'", f"{last}: {{v}}"]
    return PinnedValue(raw=value, template=_detect_template(text, value, forms, pin))


def _read_toml_key(text: str, pin: Pin) -> PinnedValue:
    try:
        doc = tomlkit.parse(text)
    except TOMLKitError as exc:
        raise PinNotFoundError(f"Cannot parse {pin.path}: {exc}") from exc
    value = _lookup(doc, pin)
    last = (pin.key or "").split(".")[-1]
    forms = [f'{last} = "{{v}}"', f"{last} = '{{v}}'", f"{last} = {{v}}"]
    return PinnedValue(raw=value, template=_detect_template(text, value, forms, pin))


def _detect_template(text: str, value: str, forms: list[str], pin: Pin) -> str:
    """Pick the first form that occurs in ``text`` as a whole token."""
    for form in forms:
        if substitution_pattern(form.replace("{v}", value)).search(text):
            return form.replace("{v}", VERSION_PLACEHOLDER)
    return pin.default_template()


def _read_requirement(text: str, pin: Pin) -> PinnedValue:
    wanted = canonicalize_name(pin.requirement or "")
    for line in text.splitlines():
        code = line.split("#", 1)[0].strip()
        if not code or code.startswith("-"):
            continue
        try:
            req = Requirement(code)
        except InvalidRequirement:
            continue
        if canonicalize_name(req.name) != wanted:
            continue
        for spec in req.specifier:
            if spec.operator != "==":
                continue
            m = re.search(r"==\s*" + re.escape(spec.version), code)
            if m is None:
                break
            template = code[: m.start()] + m.group(0).replace(
                spec.version, VERSION_PLACEHOLDER
            )
            return PinnedValue(raw=spec.version, template=template)
    raise PinNotFoundError(f"No {pin.requirement}==<version> pin in {pin.path}")
