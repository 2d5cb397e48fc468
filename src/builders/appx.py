"""AppX package builder using makeappx."""

from __future__ import annotations

import logging
import os
import shutil
import tempfile
import textwrap
from typing import Optional
from xml.sax.saxutils import escape

from cli_config import PackagingSettings
from common.tool_runner import ToolRunner
from constants import Constants
from errors import DependencyMissing, MissingExpectedFile
from planning.models import BuildResult, PackagePlan, PackageType
from planning.version import artifact_file_name, msi_version

from .msi import target_architecture

logger = logging.getLogger(__name__)

APPX_ASSETS = ("Square150x150Logo.png", "Square44x44Logo.png", "StoreLogo.png")

_APPX_MANIFEST_TEMPLATE = textwrap.dedent("""\
    <?xml version="1.0" encoding="utf-8"?>
    <Package xmlns="http://schemas.microsoft.com/appx/manifest/foundation/windows10"
             xmlns:uap="http://schemas.microsoft.com/appx/manifest/uap/windows10"
             xmlns:rescap="http://schemas.microsoft.com/appx/manifest/foundation/windows10/restrictedcapabilities"
             IgnorableNamespaces="uap rescap">
      <Identity Name="Microsoft.PowerShell" ProcessorArchitecture="{arch}" Publisher="CN={vendor}" Version="{version}" />
      <Properties>
        <DisplayName>{display_name}</DisplayName>
        <PublisherDisplayName>{vendor}</PublisherDisplayName>
        <Logo>assets\\StoreLogo.png</Logo>
      </Properties>
      <Resources>
        <Resource Language="en-us" />
      </Resources>
      <Dependencies>
        <TargetDeviceFamily Name="Windows.Desktop" MinVersion="10.0.10240.0" MaxVersionTested="10.0.15063.0" />
      </Dependencies>
      <Capabilities>
        <rescap:Capability Name="runFullTrust" />
      </Capabilities>
      <Applications>
        <Application Id="PowerShell" Executable="{executable}" EntryPoint="Windows.FullTrustApplication">
          <uap:VisualElements DisplayName="{display_name}" Description="{description}"
                              BackgroundColor="transparent"
                              Square150x150Logo="assets\\Square150x150Logo.png"
                              Square44x44Logo="assets\\Square44x44Logo.png" />
        </Application>
      </Applications>
    </Package>
""")


def render_manifest(plan: PackagePlan, settings: PackagingSettings, runtime: Optional[str]) -> str:
    display_name = f"{plan.name} {plan.version}"
    return _APPX_MANIFEST_TEMPLATE.format(
        arch=target_architecture(runtime),
        vendor=escape(settings.vendor),
        version=msi_version(plan.version),
        display_name=escape(display_name),
        description=escape(settings.description.splitlines()[0]),
        executable=f"{plan.name}.exe",
    )


class AppxPackageBuilder:
    """Lays out an AppX directory (output + manifest + logos) and packs it."""

    def __init__(self, settings: PackagingSettings, runner: ToolRunner, runtime: Optional[str] = None):
        self._settings = settings
        self._runner = runner
        self._runtime = runtime

    def precheck(self) -> None:
        if not self._runner.which("makeappx"):
            raise DependencyMissing("makeappx", Constants.MAKEAPPX_HINT)

    def build(self, plan: PackagePlan, source_path: str, force: bool = False) -> BuildResult:
        appx_path = os.path.join(self._settings.output_dir,
                                 artifact_file_name(plan.name, plan.version, "appx", plan.name_suffix))
        if os.path.exists(appx_path):
            if not force:
                raise FileExistsError(f"{appx_path} already exists; use --force to overwrite")
            os.remove(appx_path)
        os.makedirs(self._settings.output_dir, exist_ok=True)

        work_dir = tempfile.mkdtemp(prefix="pspackage-appx-")
        try:
            layout = os.path.join(work_dir, "layout")
            shutil.copytree(source_path, layout)
            assets_out = os.path.join(layout, "assets")
            os.makedirs(assets_out, exist_ok=True)
            for asset in APPX_ASSETS:
                asset_path = os.path.join(self._settings.assets_dir, asset)
                if not os.path.isfile(asset_path):
                    raise MissingExpectedFile(asset_path)
                shutil.copy2(asset_path, assets_out)
            with open(os.path.join(layout, "AppxManifest.xml"), "w", encoding="utf-8") as f:
                f.write(render_manifest(plan, self._settings, self._runtime))
            self._runner.run(["makeappx", "pack", "/o", "/v", "/h", "SHA256", "/d", layout, "/p", appx_path])
        finally:
            shutil.rmtree(work_dir, ignore_errors=True)

        logger.info("Created AppX package: %s", appx_path)
        return BuildResult(artifact_path=appx_path, type=PackageType.APPX)
