from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from ..config import CpuVendor, GpuVendor

_REQUIRED_LISTS = ("base", "providers", "official", "bluetooth", "aur")
_REQUIRED_MAPS = ("microcode", "gpu")


def _package_root() -> Path:
    # hyprarch_installer/lib/manifests.py -> hyprarch_installer
    return Path(__file__).resolve().parents[1]


def load_yaml_rel(rel_path: str) -> Dict[str, Any]:
    """Load a YAML file relative to the package (manifests/...)."""

    p = _package_root() / rel_path.lstrip("/")
    data = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Manifest must be a mapping/dict: {p}")
    return data


@dataclass(frozen=True)
class PackageManifest:
    raw: Dict[str, Any]

    def _list(self, key: str) -> List[str]:
        return [str(p) for p in (self.raw.get(key) or [])]

    @property
    def base(self) -> List[str]:
        return self._list("base")

    @property
    def providers(self) -> List[str]:
        return self._list("providers")

    @property
    def official(self) -> List[str]:
        return self._list("official")

    @property
    def bluetooth(self) -> List[str]:
        return self._list("bluetooth")

    @property
    def aur(self) -> List[str]:
        return self._list("aur")

    def microcode(self, cpu: CpuVendor) -> List[str]:
        return [str(p) for p in ((self.raw.get("microcode") or {}).get(cpu.value) or [])]

    def gpu_drivers(self, gpu: GpuVendor) -> List[str]:
        return [str(p) for p in ((self.raw.get("gpu") or {}).get(gpu.value) or [])]

    def base_install_set(self, cpu: CpuVendor) -> List[str]:
        return [*self.base, *self.microcode(cpu)]


def load_package_manifest(path: Optional[str] = None) -> PackageManifest:
    if path:
        raw = yaml.safe_load(Path(path).read_text(encoding="utf-8")) or {}
        if not isinstance(raw, dict):
            raise ValueError(f"Manifest must be a mapping/dict: {path}")
    else:
        raw = load_yaml_rel("manifests/packages.yaml")

    for key in _REQUIRED_LISTS:
        if not isinstance(raw.get(key), list):
            raise ValueError(f"Package manifest key {key!r} must be a list")
    for key in _REQUIRED_MAPS:
        if not isinstance(raw.get(key), dict):
            raise ValueError(f"Package manifest key {key!r} must be a mapping")
    return PackageManifest(raw=raw)
