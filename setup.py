from setuptools import setup
import os

VERSION = "0.1"


def get_long_description():
    with open(
        os.path.join(os.path.dirname(os.path.abspath(__file__)), "README.md"),
        encoding="utf8",
    ) as fp:
        return fp.read()


setup(
    name="datasette-site-indexer",
    description="Crawls configured websites into a lemma index stored in Datasette.",
    long_description=get_long_description(),
    long_description_content_type="text/markdown",
    license="Apache License, Version 2.0",
    classifiers=[
        "Framework :: Datasette",
        "License :: OSI Approved :: Apache Software License"
    ],
    version=VERSION,
    packages=["datasette_site_indexer", "datasette_site_indexer.plugins"],
    entry_points={"datasette": ["site_indexer = datasette_site_indexer"]},
    install_requires=["datasette", "selectolax<1.0", "pluggy", "httpx", "more-itertools", "structlog", "pymorphy3", "pymorphy3-dicts-ru"],
    extras_require={"test": ["wheel", "pytest", "pytest-asyncio", "pytest-watch", "coverage"]},
    python_requires=">=3.8",
)
