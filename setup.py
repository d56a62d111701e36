#! /usr/bin/env python

"""
memthick
Calculate a 2D map of membrane thickness from molecular dynamics trajectories of lipid bilayers
"""
from setuptools import setup

DOCLINES = __doc__.split("\n")

setup(
    # Self-descriptive entries which should always be present
    name='memthick',
    version='0.1',
    description=DOCLINES[2],
    license='BSD-3-Clause',
    python_requires='>=3.8',
    install_requires=['numpy', 'mdtraj', 'matplotlib', 'tqdm'],
    extras_require={'test': ['pytest']},
    packages=['memthick', 'memthick.llclib', 'memthick.analysis'],
    entry_points={'console_scripts': ['memthick = memthick.analysis.thickness:main']},
)
