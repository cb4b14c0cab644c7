# setup.py
from setuptools import setup, find_packages

setup(
    name="sitemap_audit",
    version="0.1.0",
    description="Асинхронный аудит sitemap.xml: доступность страниц и их ресурсов",
    packages=find_packages(exclude=("tests", "tests.*")),
    package_data={"sitemap_audit": ["templates/*.j2"]},
    install_requires=[
        "aiohttp>=3.9",
        "beautifulsoup4>=4.12",
        "click>=8.2",
        "Jinja2>=3.1",
        "lxml>=5.0",
        "pydantic>=2.5",
        "PyYAML>=6.0",
    ],
    extras_require={
        "test": [
            "pytest>=8.0",
            "pytest-asyncio>=0.23",
        ],
    },
    entry_points={
        "console_scripts": ["sitemap-audit=sitemap_audit.cli:cli"],
    },
    python_requires=">=3.11",
)
