from pathlib import Path
from setuptools import find_packages, setup
from setuptools.command.install import install
import shutil
import stat
import sys


class InstallModNest(install):
    """Install modnest and drop an executable launcher into ~/.bin/modnest."""

    def run(self):
        super().run()

        launcher = Path(self.install_scripts) / "modnest"
        if not launcher.exists():
            print(f"⚠  launcher not found at {launcher}; skipping ~/.bin copy", file=sys.stderr)
            return

        dest_dir = Path.home() / ".bin"
        dest_dir.mkdir(parents=True, exist_ok=True)
        dest_file = dest_dir / "modnest"

        shutil.copy2(launcher, dest_file)

        dest_file.chmod(dest_file.stat().st_mode | stat.S_IXUSR)

        print(f"✔ modnest installed at {dest_file}")

        print("\n⚠  Make sure '~/.bin' is on your PATH.")


setup(
    name="modnest",
    version="0.3.0",
    description="Nested git repository manifests and transient directory consolidation",
    author="GAHEOS",
    python_requires=">=3.8",
    package_dir={"": "src"},
    packages=find_packages(where="src"),
    entry_points={"console_scripts": ["modnest = modnest.cli:main"]},
    extras_require={"test": ["pytest"]},
    cmdclass={"install": InstallModNest},
)
