#!/usr/bin/env python
# coding: utf-8

from setuptools import setup, find_packages

setup(
    name='Aplate',
    version='1.0.0',
    description='A package to read CellReporterXpress multi-well plate experiments',
    packages=find_packages(exclude=['tests', 'tests.*']),
    platforms='linux',
    install_requires=['numpy', 'Pillow', 'openslide-python>=1.4', 'openslide-bin', 'tzdata'],
    extras_require={
        'tests': ['pytest'],
    },
    python_requires='>=3.9',
    classifiers=[
        'Development Status :: 4 - Beta',
        'Intended Audience :: Science/Research',
        'License :: OSI Approved :: MIT License',
        'Programming Language :: Python :: 3',
        'Programming Language :: Python :: 3.9',
        'Programming Language :: Python :: 3.10',
        'Programming Language :: Python :: 3.11',
        'Programming Language :: Python :: 3.12',
        'Operating System :: POSIX :: Linux',
        'Topic :: Scientific/Engineering :: Bio-Informatics',
        'Topic :: Scientific/Engineering :: Image Processing',
    ],
)
