from os import path
from setuptools import setup, find_packages
from oplogo.version import __version__

# Get the long description from the README file
here = path.abspath( path.dirname( __file__ ) )
with open( path.join( here, 'DESCRIPTION.rst' ), encoding='utf-8' ) as f:
    long_description = f.read()

setup(
    name='oplogo',
    version=__version__,
    description=('Unpack and repack the splash LOGO containers '
                'used for device boot screens'),
    long_description=long_description,
    classifiers=[
        'Development Status :: 4 - Beta',
        'Environment :: Console',
        'Intended Audience :: Developers',
        'Programming Language :: Python :: 3 :: Only',
        'Programming Language :: Python :: 3',
    ],
    python_requires='>=3.7',
    install_requires=[
        'Pillow >= 7.0.0',
        'typing_extensions >= 3.7.4',
    ],
    extras_require={
        'test': ['pytest'],
    },
    packages=find_packages( exclude=['doc'] ),
    entry_points={
        'console_scripts': [
            'oplogo = oplogo.cli:oplogo',
        ],
    },
)
