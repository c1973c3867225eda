"""Concourse build metadata read from the process environment.

Concourse exports the identity of the running build to every resource
``put``. Herald uses it to link notifications back to the build page.

Usage
-----
>>> import os
>>> os.environ["BUILD_NAME"] = "42"
>>> BuildEnvironment.from_env().build_name
'42'

"""

from __future__ import annotations

import dataclasses as dc
import json
import os
import urllib.parse


@dc.dataclass(frozen=True, slots=True)
class BuildEnvironment:
    """Build metadata exported by Concourse to ``out`` scripts.

    Attributes
    ----------
    build_id
        Internal build identifier (``BUILD_ID``).
    build_name
        Build number shown in the UI (``BUILD_NAME``).
    job_name
        Job running the step (``BUILD_JOB_NAME``).
    pipeline_name
        Pipeline name (``BUILD_PIPELINE_NAME``).
    pipeline_instance_vars
        JSON object of instance variables for instanced pipelines
        (``BUILD_PIPELINE_INSTANCE_VARS``); empty otherwise.
    team_name
        Team owning the pipeline (``BUILD_TEAM_NAME``).
    atc_external_url
        Public URL of the Concourse web node (``ATC_EXTERNAL_URL``).

    """

    build_id: str = ""
    build_name: str = ""
    job_name: str = ""
    pipeline_name: str = ""
    pipeline_instance_vars: str = ""
    team_name: str = ""
    atc_external_url: str = ""

    @classmethod
    def from_env(cls) -> BuildEnvironment:
        """Create the environment snapshot from ``os.environ``."""
        return cls(
            build_id=os.environ.get("BUILD_ID", ""),
            build_name=os.environ.get("BUILD_NAME", ""),
            job_name=os.environ.get("BUILD_JOB_NAME", ""),
            pipeline_name=os.environ.get("BUILD_PIPELINE_NAME", ""),
            pipeline_instance_vars=os.environ.get("BUILD_PIPELINE_INSTANCE_VARS", ""),
            team_name=os.environ.get("BUILD_TEAM_NAME", ""),
            atc_external_url=os.environ.get("ATC_EXTERNAL_URL", ""),
        )

    def build_url(self) -> str:
        """Return the URL of this build's page in the Concourse UI.

        Instanced pipelines carry their instance variables as ``vars.<key>``
        query parameters, which is how the UI addresses them.
        """
        base = self.atc_external_url.rstrip("/")
        url = (
            f"{base}/teams/{self.team_name}/pipelines/{self.pipeline_name}"
            f"/jobs/{self.job_name}/builds/{self.build_name}"
        )
        query = self._instance_vars_query()
        return f"{url}?{query}" if query else url

    def _instance_vars_query(self) -> str:
        if not self.pipeline_instance_vars:
            return ""
        try:
            instance_vars = json.loads(self.pipeline_instance_vars)
        except json.JSONDecodeError:
            return ""
        if not isinstance(instance_vars, dict):
            return ""
        return urllib.parse.urlencode(
            [
                (f"vars.{key}", json.dumps(value))
                for key, value in sorted(instance_vars.items())
            ]
        )

    def __str__(self) -> str:
        """Return one ``NAME: value`` line per variable."""
        return "\n".join(
            f"{field.name}: {getattr(self, field.name)}" for field in dc.fields(self)
        )
