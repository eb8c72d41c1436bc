import setuptools

with open("README.md", "r") as fh:
    long_description = fh.read()

setuptools.setup(
    name="blendstruct",
    version="0.0.1",
    description="Read .blend files through their own struct catalog",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=setuptools.find_packages(exclude=["tests", "tests.*"]),
    scripts=[
        'scripts/readblend.py',
        'scripts/blendthumbnail.py',
    ],
    python_requires='>=3.8',
    install_requires=[
        'pillow>=9.1',
    ],
    extras_require={
        'test': [
            'pytest',
        ],
    },
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: GNU General Public License v2 (GPLv2)",
        "Operating System :: OS Independent",
    ],
)
