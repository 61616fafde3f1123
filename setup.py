import setuptools

with open("README.md", "r") as fh:
  long_description = fh.read()

with open('requirements.txt') as f:
  requirements = f.read().splitlines()

setuptools.setup(
    name="difflint",
    version="0.0.1",
    author="Cyrille Faucheux",
    author_email="cyrille.faucheux@gmail.com",
    description="Report only the linter findings introduced by uncommitted git changes",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=setuptools.find_packages(exclude=['test']),
    classifiers=[
      "Programming Language :: Python :: 3",
      "License :: OSI Approved :: MIT License",
      "Operating System :: POSIX",
      "Topic :: Software Development :: Version Control :: Git",
      "Topic :: Software Development :: Quality Assurance",
      ],
    python_requires='>=3.8',
    install_requires=requirements,
    extras_require={'tests': ['pytest']},
    scripts=['bin/diff-lint.py'],
    )
