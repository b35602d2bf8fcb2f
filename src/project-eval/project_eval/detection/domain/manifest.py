"""PackageManifest — the parts of package.json that classification relies on."""

import json

from pydantic import BaseModel, Field, ValidationError


class PackageManifest(BaseModel, frozen=True):
    name: str | None = None
    dependencies: dict[str, str] = Field(default_factory=dict)
    dev_dependencies: dict[str, str] = Field(default_factory=dict, alias="devDependencies")
    peer_dependencies: dict[str, str] = Field(
        default_factory=dict, alias="peerDependencies"
    )
    scripts: dict[str, str] = Field(default_factory=dict)

    def declares(self, *packages: str) -> bool:
        """Return True if any of packages appears in any dependency map."""
        declared = (
            self.dependencies.keys()
            | self.dev_dependencies.keys()
            | self.peer_dependencies.keys()
        )
        return any(package in declared for package in packages)


def parse_manifest(text: str | None) -> PackageManifest | None:
    """Parse package.json text; return None when absent or malformed."""
    if text is None:
        return None
    try:
        data = json.loads(text)
    except json.JSONDecodeError:
        return None
    if not isinstance(data, dict):
        return None
    try:
        return PackageManifest.model_validate(data)
    except ValidationError:
        return None
