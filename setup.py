import setuptools
import codecs
import os

# Determine the directory containing this setup.py file
setup_dir = os.path.dirname(os.path.abspath(__file__))
readme_path = os.path.join(setup_dir, "README.md")

with codecs.open(readme_path, "r", "utf-8") as fh:
    long_description = fh.read()

version = {}
with open(os.path.join(setup_dir, "libs", "contextio", "version.py"), "r") as fversion:
    exec(fversion.read(), version)

required_url = []
required = []
requirements_path = os.path.join(setup_dir, "requirements.txt")
with open(requirements_path, "r") as freq:
    for line in freq.read().split():
        if "://" in line:
            required_url.append(line)
        else:
            required.append(line)

setuptools.setup(
    name="contextio",
    version=version["__version__"],
    url="https://github.com/contextio/Python-ContextIO",
    author="Context.IO",

    description="Context.IO 2.0 API client with OAuth 1.0 request signing and verification.",
    long_description=long_description,
    long_description_content_type="text/markdown",

    package_dir={'': 'libs'},
    packages=['contextio', 'contextio.test', 'contextio.test.mock_provider'],

    install_requires=required,
    dependency_links=required_url,
    extras_require={
        "test": ["pytest"],
    },
    python_requires='>=3.10',
    entry_points={
        "console_scripts": [
            "contextio-sign=contextio.sign:main",
        ],
    },

    license="BSD-3 Clause",
    classifiers=[
        "Programming Language :: Python :: 3",
        "Operating System :: OS Independent",
        "License :: OSI Approved :: BSD License"
     ],
)
