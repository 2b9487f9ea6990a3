from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from rnci.config import FormValues
from rnci.dsl import action, all_of, script, sh
from rnci.model import Step

from .build import artifacts, build_type_guard, platform_guard, selected_builds


UPLOAD_ARTIFACT_ACTION = "actions/upload-artifact@v4"
RCLONE_ACTION = "AnimMouse/setup-rclone@v1"
RELEASE_ACTION = "softprops/action-gh-release@v1"


def secret(name: str) -> str:
    return f"${{{{ secrets.{name} }}}}"


@dataclass(frozen=True)
class DriveStorage:
    """A cloud drive reached through an rclone remote configured from secrets."""
    label: str
    remote: str
    # (rclone config option, environment/secret name)
    options: Tuple[Tuple[str, str], ...]

    @property
    def secrets(self) -> Tuple[str, ...]:
        return tuple(env for _, env in self.options)

    def config_script(self) -> str:
        return script(
            "mkdir -p ~/.config/rclone",
            "cat > ~/.config/rclone/rclone.conf << EOF",
            f"[{self.remote}]",
            *(f"{opt} = ${env}" for opt, env in self.options),
            "EOF",
        )


DRIVES: Dict[str, DriveStorage] = {
    "zoho-drive": DriveStorage(
        label="Zoho Drive",
        remote="zohodrive",
        options=(
            ("type", "RCLONE_CONFIG_ZOHODRIVE_TYPE"),
            ("token", "RCLONE_CONFIG_ZOHODRIVE_TOKEN"),
            ("drive_id", "RCLONE_CONFIG_ZOHODRIVE_DRIVE_ID"),
        ),
    ),
    "google-drive": DriveStorage(
        label="Google Drive",
        remote="gdrive",
        options=(
            ("type", "RCLONE_CONFIG_GDRIVE_TYPE"),
            ("token", "RCLONE_CONFIG_GDRIVE_TOKEN"),
            ("root_folder_id", "RCLONE_CONFIG_GDRIVE_ROOT_FOLDER_ID"),
        ),
    ),
    "custom": DriveStorage(
        label="cloud storage",
        remote="cloud",
        options=(
            ("type", "CLOUD_STORAGE_TYPE"),
            ("token", "CLOUD_STORAGE_TOKEN"),
            ("root_id", "CLOUD_STORAGE_ROOT_ID"),
        ),
    ),
}

RELEASE_SECRETS: Tuple[str, ...] = ("GITHUB_TOKEN",)


def storage_secrets(storage_type: str) -> Tuple[str, ...]:
    drive = DRIVES.get(storage_type)
    return drive.secrets if drive else RELEASE_SECRETS


def _drive_steps(config: FormValues, drive: DriveStorage) -> List[Step]:
    out: List[Step] = [
        action("🏗 Setup rclone", RCLONE_ACTION, with_={"version": "latest"}),
        sh(f"📤 Configure {drive.label}", drive.config_script()),
    ]
    for rule in selected_builds(config):
        artifact = rule.output.lstrip("./")
        out.append(
            sh(
                f"📤 Upload {artifact} to {drive.label}",
                f"rclone copy {rule.output} {drive.remote}:builds/${{{{ github.run_number }}}}/",
                if_=all_of(platform_guard(config, rule.platform), build_type_guard(rule.build_types)),
            )
        )
    return out


def _release_steps(outputs: List[str]) -> List[Step]:
    return [
        sh(
            "🏷️ Generate build information",
            script(
                "VERSION=$(jq -r '.version' package.json)",
                'echo "version=$VERSION" >> $GITHUB_OUTPUT',
                'echo "build_number=${{ github.run_number }}" >> $GITHUB_OUTPUT',
                'git log --pretty=format:"- %s" -n 10 > CHANGELOG.md',
            ),
            id="build-info",
        ),
        action(
            "📝 Create GitHub Release",
            RELEASE_ACTION,
            with_={
                "draft": True,
                "name": "Release v${{ steps.build-info.outputs.version }} "
                        "(build ${{ steps.build-info.outputs.build_number }})",
                "tag_name": "v${{ steps.build-info.outputs.version }}-${{ steps.build-info.outputs.build_number }}",
                "files": script(*outputs),
                "body_path": "CHANGELOG.md",
            },
        ),
    ]


def publication_steps(config: FormValues) -> List[Step]:
    """
    Artifact publication for the configured storage type.

    Drive storage always gets its rclone setup; uploads, the artifact archive
    and the release only appear when at least one build step exists.
    """
    outputs = artifacts(config)
    drive: Optional[DriveStorage] = DRIVES.get(config.storage_type)

    out: List[Step] = []
    if drive is not None:
        out.extend(_drive_steps(config, drive))

    if outputs:
        name = "app-builds"
        if config.advanced_options.ios_support:
            name = "app-builds-${{ matrix.platform }}"
        out.append(
            action(
                "📦 Upload build artifacts",
                UPLOAD_ARTIFACT_ACTION,
                with_={"name": name, "path": script(*outputs), "retention-days": 7},
            )
        )
        if drive is None:
            out.extend(_release_steps(outputs))
    return out
