"""
Setup script for cylinder_lbm package.
"""

from setuptools import setup, find_packages

setup(
    name="cylinder_lbm",
    version="0.1.0",
    description="D2Q9 Lattice Boltzmann solver for 2D flow past a cylinder",
    author="Andrey",
    packages=find_packages(include=["cylinder_lbm", "cylinder_lbm.*"]),
    python_requires=">=3.9",
    install_requires=[
        "numpy>=1.20",
        "numba>=0.56",
        "matplotlib>=3.5",
    ],
    extras_require={
        "dev": ["pytest>=7.0", "black", "flake8"],
    },
)
