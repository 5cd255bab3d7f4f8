"""Setup configuration for GitHub Project Exporter."""

from setuptools import find_packages, setup

setup(
    name="github-project-exporter",
    version="0.1.0",
    description="Prometheus exporter for GitHub Projects: project, column and card counts",
    python_requires=">=3.11",
    packages=find_packages(where="src", include=["project_exporter*"]),
    package_dir={"": "src"},
    install_requires=[
        "httpx>=0.27.0",
        "pydantic>=2.6.0",
        "pydantic-settings>=2.7.0",
        "prometheus-client>=0.17.0",
    ],
    entry_points={
        "console_scripts": [
            "github-project-exporter=project_exporter.cli:cli_entry",
        ],
    },
    extras_require={
        "dev": [
            "pytest>=8.0.0",
            "pytest-asyncio>=0.23.0",
            "pytest-mock>=3.12.0",
            "respx>=0.21.0",
            "python-dotenv>=1.0.0",
        ],
    },
)
