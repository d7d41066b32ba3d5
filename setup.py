#!/usr/bin/env python
# -*- coding: utf-8 -*-

from setuptools import Command, find_packages, setup
import subprocess
import sys


# Load the __version__ variable
exec(open('fidpromise/__version__.py').read())


with open('README.rst') as readme_file:
    long_description = readme_file.read()


class Tox(Command):
    description = "Run the test suite with tox."
    user_options = [('tox-args=', 'a', "Arguments to pass to tox")]

    def initialize_options(self):
        self.tox_args = ''

    def finalize_options(self):
        pass

    def run(self):
        import shlex
        errno = subprocess.call([sys.executable, '-m', 'tox'] +
                                shlex.split(self.tox_args))
        sys.exit(errno)


setup_kwargs = {
    'name': "fidpromise",
    'version': __version__,  # noqa
    'description': "Promise/A+ style deferred values, with combinators",
    'long_description': long_description,
    'license': "MIT",
    'classifiers': [
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Topic :: Software Development :: Libraries"
    ],
    'keywords': "promise deferred thenable async",
    'packages': find_packages(exclude=['tests', 'tests.*']),
    'python_requires': '>=3.7',
    'install_requires': [
        'appdirs>=1.4',
    ],
    'extras_require': {
        'test': ['pytest>=7', 'tox'],
    },
    'cmdclass': {
        'test': Tox,
    },
    'zip_safe': False,
}


setup(**setup_kwargs)
