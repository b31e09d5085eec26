"""
Packaging for simrng. The version comes from the last git tag, with a fallback
to ``src/simrng/__init__.py`` when git is unavailable.
"""
import re
import subprocess
from pathlib import Path
from setuptools import find_packages, setup

def get_version() -> str:
    """get the last version tag from git, with fallback to __init__.py

    Returns:
        str: version tag in PEP 440 format
    """
    try:
        result = subprocess.run(
            ["git", "describe", "--tags"],
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            check=False,
            timeout=5
        )
        version_tag = result.stdout.decode("utf-8").strip()

        if version_tag:
            # "v1.0.0-12-g4f69b64" becomes "1.0.0.post12"
            match = re.match(r'v?(\d+\.\d+\.\d+)(?:-(\d+)-g[a-f0-9]+)?', version_tag)
            if match:
                base_version = match.group(1)
                commits_since = match.group(2)
                if commits_since:
                    return f"{base_version}.post{commits_since}"
                return base_version
    except (subprocess.TimeoutExpired, FileNotFoundError, IndexError):
        pass

    init_file = Path(__file__).parent / "src" / "simrng" / "__init__.py"
    if init_file.exists():
        match = re.search(r'__version__\s*=\s*["\']([^"\']+)["\']', init_file.read_text())
        if match:
            return match.group(1)

    return "1.0.0"

def validate_version(version: str) -> bool:
    """Validate Version (matches PEP 440 format)

    Args:
        version (str): version string

    Returns:
        bool: if it validates, returns True, else False
    """
    pattern = r'^\d+\.\d+\.\d+([.-]?\w+)?$'
    return bool(re.match(pattern, version))


simrng_version = get_version()
if not validate_version(simrng_version):
    print(f"Warning: Version '{simrng_version}' may not match semantic versioning pattern")

setup(
    name="simrng",
    version=simrng_version,
    description="Seeded pseudo-random variate generation and goodness-of-fit testing for simulation courses",
    package_dir={"": "src"},
    packages=find_packages(where="src"),
    python_requires=">=3.8",
    install_requires=[
        "numpy",
        "scipy>=1.4",
        "pandas",
        "matplotlib",
        "colorlog",
    ],
    extras_require={
        "test": ["pytest"],
    },
    entry_points={
        "console_scripts": ["simrng=simrng.cli:main"],
    },
)
