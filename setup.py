"""
Setup script for StegoText
"""

from setuptools import setup, find_packages
from pathlib import Path

# Read README if it exists
readme_file = Path(__file__).parent / "README.md"
long_description = ""
if readme_file.exists():
    with open(readme_file, 'r', encoding='utf-8') as f:
        long_description = f.read()

setup(
    name="stegotext",
    version="1.0.0",
    description="LSB steganography tool - hide text messages inside images and video frames",
    long_description=long_description,
    long_description_content_type="text/markdown",
    author="StegoText Team",
    packages=find_packages(exclude=["tests", "tests.*"]),
    py_modules=["main"],
    install_requires=[
        "Pillow>=10.0.0",
        "numpy>=1.24.0",
        "opencv-python-headless>=4.8.0",
        "tqdm>=4.65.0",
        "PyYAML>=6.0",
        "colorama>=0.4.6",
    ],
    extras_require={
        "test": ["pytest>=7.4.0"],
    },
    entry_points={
        "console_scripts": [
            "stegotext=main:main",
        ],
    },
    python_requires=">=3.8",
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: End Users/Desktop",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
    ],
)
