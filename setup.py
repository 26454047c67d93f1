#!/usr/bin/env python3
# -*- coding: utf-8 -*-
import setuptools
from glob import glob
setuptools.setup(name="mbsvd",
                 version="0.0.1",
                 author="Benjamin James",
                 author_email="benjames@mit.edu",
                 license="GPL",
                 python_requires=">=3.9",
                 install_requires=[
                     "numpy",
                     "scipy>=1.9",
                     "scikit-learn",
                     "anndata>=0.8.0",
                     "h5py",
                     "pandas",
                     "tqdm",
                 ],
                 extras_require={
                     "test": ["pytest"],
                 },
                 packages=setuptools.find_packages(".", include=["mbsvd", "mbsvd.*"]),
                 test_suite="test",
                 scripts=glob("scripts/*.py")
                 )
