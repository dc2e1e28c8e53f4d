#!/usr/bin/env python

from setuptools import setup, find_packages

ver_dic = {}
version_file = open("loom/version.py")
try:
    version_file_contents = version_file.read()
finally:
    version_file.close()

exec(compile(version_file_contents, "loom/version.py", "exec"), ver_dic)


setup(name="loom",
      version=ver_dic["VERSION_TEXT"],
      description="A verifier for sharded tensor operation graphs",
      long_description=open("README.rst").read(),
      classifiers=[
          "Development Status :: 3 - Alpha",
          "Intended Audience :: Developers",
          "Intended Audience :: Science/Research",
          "License :: OSI Approved :: MIT License",
          "Natural Language :: English",
          "Programming Language :: Python",
          "Programming Language :: Python :: 3",
          "Topic :: Scientific/Engineering",
          "Topic :: Scientific/Engineering :: Mathematics",
          "Topic :: Software Development :: Libraries",
          "Topic :: Utilities",
          ],

      python_requires="~=3.8",
      install_requires=[
          "pytools>=2023.1.1",
          "numpy>=1.19",
          "islpy>=2019.1",
          "colorama",
          "immutables",
          "networkx>=2.6",
          "jsonschema>=4.0",
          ],

      extras_require={
          "test": [
              "pytest>=7",
              ],
          },

      license="MIT",
      packages=find_packages(include=["loom", "loom.*"]),
      )
