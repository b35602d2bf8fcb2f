"""Stack detection — a pure classification of an archive's file listing and manifests.

Rules are ordered and the first match wins. Each rule consults structural
markers (config files, root HTML, entry files) before dependency hints, and
every structural signal is also recorded as an independent check so that the
report is useful even when no framework matches.
"""

import re

from project_eval.archive.domain.layout import project_root_prefix, relative_to_root
from project_eval.detection.domain.manifest import PackageManifest, parse_manifest
from project_eval.detection.domain.report import (
    Confidence,
    DetectionCheck,
    DetectionReport,
    Framework,
)

TOP_LEVEL_SAMPLE_SIZE = 25

_VITE_CONFIG = re.compile(r"^vite\.config\.(js|mjs|cjs|ts|mts|cts)$")
_NEXT_CONFIG = re.compile(r"^next\.config\.(js|mjs|cjs|ts|mts)$")
_WEBPACK_CONFIG = re.compile(r"^webpack\.config\.(js|mjs|cjs|ts)$")
_MAIN_ENTRY = re.compile(r"^src/main\.(js|jsx|ts|tsx|mjs)$")
_INDEX_ENTRY = re.compile(r"^src/index\.(js|jsx|ts|tsx|mjs)$")
_START_SCRIPTS = ("start", "dev", "preview")


def detect(entries: list[str], manifests: dict[str, str]) -> DetectionReport:
    """Classify a project from its archive entry names and manifest texts.

    entries are raw archive names; manifests are keyed by path relative to the
    project root (as produced by the archive inspector). Always returns a
    report: "no confident match" is unknown/low, never an error.
    """
    prefix = project_root_prefix(entries)
    files = sorted({relative_to_root(name, prefix) for name in entries})
    manifest = parse_manifest(manifests.get("package.json"))

    checks = _structural_checks(files=files, manifest=manifest)
    framework, confidence = _classify(files=files, manifest=manifest)

    return DetectionReport(
        detected_framework=framework,
        confidence=confidence,
        checks=checks,
        entry_count=len(entries),
        top_level_entries=_top_level_sample(files),
        root_prefix=prefix,
    )


def _classify(
    files: list[str], manifest: PackageManifest | None
) -> tuple[Framework, Confidence]:
    file_set = set(files)
    top_level = [f for f in files if "/" not in f]
    vite_config = any(_VITE_CONFIG.match(f) for f in top_level)

    def declares(*packages: str) -> bool:
        return manifest is not None and manifest.declares(*packages)

    if "angular.json" in file_set:
        return "angular", "high"
    if declares("@angular/core"):
        return "angular", "medium"

    if any(_NEXT_CONFIG.match(f) for f in top_level):
        return "nextjs", "high"
    if declares("next"):
        return "nextjs", "medium"

    if vite_config and "index.html" in file_set and declares("react", "react-dom"):
        if any(_MAIN_ENTRY.match(f) for f in files):
            return "react_vite", "high"
        return "react_vite", "medium"

    if vite_config and declares("vue", "nuxt"):
        return "vue_vite", "medium"

    return "unknown", "low"


def _structural_checks(
    files: list[str], manifest: PackageManifest | None
) -> list[DetectionCheck]:
    top_level = [f for f in files if "/" not in f]
    bundler_configs = [
        f
        for f in top_level
        if f == "angular.json"
        or _VITE_CONFIG.match(f)
        or _NEXT_CONFIG.match(f)
        or _WEBPACK_CONFIG.match(f)
    ]
    entry_files = [f for f in files if _MAIN_ENTRY.match(f) or _INDEX_ENTRY.match(f)]

    package_present = "package.json" in files
    if not package_present:
        package_detail = "package.json not found at project root"
    elif manifest is None:
        package_detail = "package.json present but could not be parsed"
    else:
        package_detail = None

    scripts = manifest.scripts if manifest is not None else {}
    start_scripts = [name for name in _START_SCRIPTS if name in scripts]

    return [
        DetectionCheck(
            name="package_json_present",
            passed=package_present,
            detail=package_detail,
        ),
        DetectionCheck(
            name="bundler_config_present",
            passed=bool(bundler_configs),
            detail=", ".join(bundler_configs) if bundler_configs else None,
        ),
        DetectionCheck(
            name="root_index_html_present",
            passed="index.html" in files,
        ),
        DetectionCheck(
            name="src_directory_present",
            passed=any(f.startswith("src/") for f in files),
        ),
        DetectionCheck(
            name="entry_file_present",
            passed=bool(entry_files),
            detail=", ".join(entry_files) if entry_files else None,
        ),
        DetectionCheck(
            name="start_script_present",
            passed=bool(start_scripts),
            detail=", ".join(start_scripts)
            if start_scripts
            else "no start/dev/preview script",
        ),
    ]


def _top_level_sample(files: list[str]) -> list[str]:
    names = sorted(
        {f.split("/", 1)[0] + "/" if "/" in f else f for f in files}
    )
    return names[:TOP_LEVEL_SAMPLE_SIZE]
