"""Setup configuration for scorecard"""

from setuptools import setup, find_packages

setup(
    name="service-scorecard-generator",
    version="0.1.0",
    description=(
        "CLI tool that scores services in a source tree and renders an Azure "
        "DevOps wiki scorecard, including pending Renovate upgrade detection."
    ),
    author="Service Scorecard Generator Contributors",
    author_email="",
    python_requires=">=3.10",
    package_dir={"": "src"},
    packages=find_packages(where="src"),
    install_requires=[
        "requests>=2.28.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0",
            "black>=22.0",
            "flake8>=4.0",
            "mypy>=0.950",
        ],
    },
    entry_points={
        "console_scripts": [
            "scorecard-generator=scorecard.main:main",
        ],
    },
)
