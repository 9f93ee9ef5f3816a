"""
Setup script for Daily Git Brief - daily trending repositories, summarized.
"""

from setuptools import setup, find_packages
from pathlib import Path

# Read the README file
readme_file = Path(__file__).parent / "README.md"
long_description = readme_file.read_text() if readme_file.exists() else ""

setup(
    name="daily-git-brief",
    version="1.0.0",
    description="Collects trending GitHub repositories daily with language breakdowns and AI summaries",
    long_description=long_description,
    long_description_content_type="text/markdown",
    author="Daily Git Brief Team",
    packages=find_packages(include=["gitbrief", "gitbrief.*", "api", "api.*"]),
    python_requires=">=3.11",
    install_requires=[
        # Web API
        "fastapi>=0.110.0",
        "uvicorn[standard]>=0.27.0",

        # HTTP client
        "httpx>=0.26.0",

        # Data validation
        "pydantic>=2.5.0",

        # Scheduling
        "apscheduler>=3.10.0,<4.0",

        # Monitoring and observability
        "prometheus-client>=0.19.0",

        # Utilities
        "python-dotenv>=1.0.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.4.0",
            "pytest-asyncio>=0.21.0",
            "pytest-cov>=4.1.0",
            "black>=23.12.0",
            "mypy>=1.7.0",
            "ruff>=0.1.8",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Software Development :: Libraries :: Python Modules",
        "Topic :: Internet :: WWW/HTTP :: Dynamic Content",
    ],
    include_package_data=True,
    zip_safe=False,
)
