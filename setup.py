"""
Setup script for the matrixfx LED panel frame engine.
"""

from setuptools import setup, find_packages

setup(
    name="matrixfx",
    version="0.1.0",
    description="Real-time frame effects and procedural animations for chained LED panels",
    author="matrixfx Team",
    author_email="info@example.com",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    install_requires=[
        "numpy>=1.21",
        "opencv-python>=4.5",
        "PyYAML>=5.4",
    ],
    python_requires=">=3.8",
)
