"""
The different setup versions method is shamelessly copied from mikedh's trimesh
Python library - thank you!
"""

import os
from setuptools import setup, find_packages

# load __version__ without importing anything
version_file = os.path.join(
    os.path.dirname(__file__),
    'wellsteer/version.py')
with open(version_file, 'r') as f:
    # use eval to get a clean string of version from file
    __version__ = eval(f.read().strip().split('=')[-1])

with open("README.md", "r") as f:
    long_description = f.read()

requirements_default = set([
    'numpy',
    'scipy',
    'pandas',
    'plotly',
    'pydantic>=2',
    'PyYAML',
    'setuptools',
])

requirements_test = set([
    'pytest',
])

setup(
    name='wellsteer',
    version=__version__,
    description=(
        'Wellbore trajectory, steering and viewer calculations for '
        'directional drilling'
    ),
    long_description=long_description,
    long_description_content_type="text/markdown",
    keywords=[
        'well',
        'trajectory',
        'wellpath',
        'wellbore',
        'drilling',
        'minimum curvature',
        'directional drilling',
        'motor yield',
        'slide',
        'dogleg',
        'mwd',
        'survey',
    ],
    license='Apache 2.0',
    classifiers=[
        'Development Status :: 4 - Beta',
        'License :: OSI Approved :: Apache Software License',
        'Programming Language :: Python :: 3',
        'Natural Language :: English',
        'Topic :: Scientific/Engineering',
    ],
    python_requires='>=3.9',
    packages=find_packages(exclude=["tests"]),
    package_data={
        'wellsteer': [
            '*.yaml',
        ]
    },
    install_requires=list(requirements_default),
    extras_require={
        'test': list(requirements_test),
    }
)
