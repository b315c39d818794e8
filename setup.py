"""Setup configuration for pr_insights"""

from setuptools import setup, find_namespace_packages

setup(
    name="pr-event-insights",
    version="0.1.0",
    description=(
        "Pull request event analytics: current PR state, activity histograms, "
        "merge velocity, and contributor cohorts."
    ),
    author="PR Event Insights Contributors",
    author_email="",
    python_requires=">=3.10",
    package_dir={"": "src"},
    packages=find_namespace_packages(where="src"),
    install_requires=[
        "requests>=2.28.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
        ],
        "dev": [
            "pytest>=7.0",
            "black>=22.0",
            "flake8>=4.0",
            "mypy>=0.950",
        ],
    },
    entry_points={
        "console_scripts": [
            "pr-insights=pr_insights.main:main",
        ],
    },
)
