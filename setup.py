# setup.py
from setuptools import setup, find_packages

setup(
    name="site_harvest",
    version="0.1.0",
    description="Level-sampled website crawler with content-addressable image download",
    packages=find_packages(exclude=("tests", "tests.*")),
    package_data={"site_harvest": ["templates/*.j2"]},
    install_requires=[
        "aiohttp>=3.9",
        "beautifulsoup4>=4.12",
        "click>=8.1",
        "jinja2>=3.1",
        "lxml>=5.0",
        "pydantic>=2.5",
        "PyYAML>=6.0",
    ],
    extras_require={
        "test": ["pytest>=8.0", "pytest-asyncio>=0.23"],
    },
    entry_points={"console_scripts": ["site-harvest=site_harvest.cli:cli"]},
    python_requires=">=3.11",
)
