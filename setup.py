#!/usr/bin/env python
"""
Kestrel
=======

Kestrel is a Python client for error and crash ingestion services. It
reports events from a single background worker, tracks release health
sessions, and lets applications filter outgoing events (``before_send``)
and answer the transport's authentication challenges (credential
delegates).
"""
from setuptools import setup, find_packages
import re
import ast


_version_re = re.compile(r'VERSION\s+=\s+(.*)')

with open('kestrel/__init__.py', 'rb') as f:
    version = str(ast.literal_eval(_version_re.search(
        f.read().decode('utf-8')).group(1)))


install_requires = [
    'requests>=2.20',
]

tests_require = [
    'flake8',
    'mock',
    'pytest>=7.0',
    'pytest-cov',
    'pytest-timeout',
]


setup(
    name='kestrel',
    version=version,
    author='Kestrel Team',
    url='https://github.com/kestrel-client/kestrel-python',
    description='Kestrel is a client for error and crash ingestion services',
    long_description=__doc__,
    packages=find_packages(exclude=("tests", "tests.*",)),
    zip_safe=False,
    python_requires='>=3.8',
    extras_require={
        'tests': tests_require,
    },
    license='BSD',
    install_requires=install_requires,
    include_package_data=True,
    classifiers=[
        'Intended Audience :: Developers',
        'Intended Audience :: System Administrators',
        'Operating System :: OS Independent',
        'Programming Language :: Python :: 3',
        'Programming Language :: Python',
        'Topic :: Software Development',
    ],
)
