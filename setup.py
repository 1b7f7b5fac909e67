#!/usr/bin/env python3
#
# Copyright (c) 2020-2021 Tatu Ylonen.  See LICENSE and https://ylonen.org

from setuptools import setup

with open("README.md", "r") as f:
    long_description = f.read()

setup(name="wikitextengine",
      version="0.1.0",
      description="Template expander, signature cleaner, section editor and renderer for MediaWiki wikitext",
      long_description=long_description,
      long_description_content_type="text/markdown",
      author="Tatu Ylonen",
      author_email="ylo@clausal.com",
      license="MIT",
      scripts=[],
      package_dir={"": "src"},
      packages=["wikitextengine"],
      package_data={"wikitextengine": ["data/*/*.json"]},
      python_requires=">=3.10",
      install_requires=["dateparser", "lru-dict"],
      extras_require={"test": ["pytest"]},
      keywords=[
          "wikitext",
          "mediawiki",
          "templates",
          "parser",
          "preprocessor",
      ],
      classifiers=[
          "Development Status :: 3 - Alpha",
          "Intended Audience :: Developers",
          "License :: OSI Approved :: MIT License",
          "Natural Language :: English",
          "Operating System :: POSIX :: Linux",
          "Programming Language :: Python",
          "Programming Language :: Python :: 3 :: Only",
          "Topic :: Text Processing",
          "Topic :: Text Processing :: Markup",
          ])
