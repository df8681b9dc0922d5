"""Build information rendered as the `build_info` metric."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field

BUILD_INFO_METRIC = "build_info"
BUILD_INFO_DESCRIPTION = "Build information for the running process"

# Environment variable -> build_info label
BUILD_INFO_ENV_VARS: dict[str, str] = {
    "AUTOMETRICS_VERSION": "version",
    "AUTOMETRICS_COMMIT": "commit",
    "AUTOMETRICS_BRANCH": "branch",
    "AUTOMETRICS_SERVICE_NAME": "service_name",
    "AUTOMETRICS_REPOSITORY_URL": "repository_url",
    "AUTOMETRICS_REPOSITORY_PROVIDER": "repository_provider",
}


@dataclass(frozen=True)
class BuildInfo:
    """Key/value build metadata.

    Attributes:
        labels: Label pairs rendered on the single `build_info` sample.
    """

    labels: dict[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "labels", {str(k): str(v) for k, v in self.labels.items()}
        )

    @classmethod
    def from_environment(
        cls,
        overrides: Mapping[str, str] | None = None,
        environ: Mapping[str, str] | None = None,
    ) -> "BuildInfo":
        """Build info from AUTOMETRICS_* variables, explicit keys winning.

        Args:
            overrides: Explicit labels; take precedence over the environment.
            environ: Environment mapping (defaults to os.environ).

        Returns:
            BuildInfo with environment labels merged under the overrides.
        """
        env = os.environ if environ is None else environ
        labels = {
            label: env[var] for var, label in BUILD_INFO_ENV_VARS.items() if env.get(var)
        }
        labels.update(overrides or {})
        return cls(labels=labels)
