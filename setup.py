#!/usr/bin/env python
import os
import sys

from setuptools import setup, find_packages
from setuptools.command.install import install

VERSION = '0.1.0'

class VerifyVersionCommand(install):
    """Custom command to verify that the git tag matches our version"""
    description = 'verify that the git tag matches our version'

    def run(self):
        tag = os.getenv('CIRCLE_TAG', '')
        tag = tag.lstrip('v')

        if tag != VERSION:
            info = f"Git tag: {tag} does not match the version of this app: {VERSION}"
            sys.exit(info)

setup(
    name='quadra',
    version=VERSION,
    description='An object to graph resource mapper for rdf quad stores.',
    python_requires='>=3.10',
    packages=find_packages(include=('quadra', 'quadra.*')),
    install_requires=[
        'rdflib>=7.0.0,<8.0.0',
        'regex>=2022.9.11',
        'PyYAML>=5.4,<7.0',
        'fastjsonschema>=2.18.0,<2.22.0',
        'msgpack>=1.0.5,<1.2.0',
        'msgspec>=0.18.5,<0.20.0',
    ],
    extras_require={
        'test': [
            'pytest>=7.2.0,<9.0.0',
            'pytest-cov>=4.0.0,<6.0.0',
        ],
    },
    cmdclass={
        'verify': VerifyVersionCommand,
    },
)
