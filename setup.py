import os
from setuptools import setup, find_packages

with open("README.md") as readme_file:
    readme = readme_file.read()

this = os.path.dirname(os.path.realpath(__file__))


def read(name):
    with open(os.path.join(this, name)) as f:
        return f.read()

VERSION = "1.3.1"


setup(
    name="pytlp",
    version=VERSION,
    description="CPU power saving settings for Linux, switched between AC and battery",
    long_description=readme,
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests"]),
    install_requires=read("requirements.txt").splitlines(),
    extras_require={"test": ["pytest"]},
    package_data={"pytlp": ["data/defaults.conf"]},
    include_package_data=True,
    zip_safe=True,
    python_requires=">=3.10",
    license="GPLv2+",
    keywords="linux cpu power saving tlp energy performance policy turbo",
    classifiers=[
        "Development Status :: 5 - Production/Stable",
        "Intended Audience :: System Administrators",
        "Operating System :: POSIX :: Linux",
        "Environment :: Console",
        "Natural Language :: English",
    ],
    entry_points={
        "console_scripts": [
            "pytlp = pytlp.bin.pytlp:main",
            "pytlp-readconfs = pytlp.bin.pytlp_readconfs:main",
        ],
    },
)
