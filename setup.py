"""
Setup configuration for the tethercam package.
"""

from setuptools import setup, find_packages

# Read README for long description
try:
    with open("README.md", "r", encoding="utf-8") as fh:
        long_description = fh.read()
except FileNotFoundError:
    long_description = "Tethered control of gphoto2 cameras: enumeration, live preview, capture and parameters"


def get_extras():
    """Get optional dependency groups."""
    extras = {
        "dev": [
            "pytest>=6.0",
            "pytest-cov>=2.0",
            "pytest-mock>=3.0",
            "black>=22.0",
            "flake8>=4.0",
            "mypy>=0.900",
            "types-click>=7.0",
            "ruff>=0.1.0",
        ],
        "test": [
            "pytest>=6.0",
            "pytest-cov>=2.0",
            "pytest-mock>=3.0",
            "pytest-xdist>=2.0",
        ],
    }

    return extras


# Core dependencies required on all platforms
install_requires = [
    "click>=8.0.0",  # CLI framework
    "gphoto2>=2.3.0",  # Python binding for libgphoto2
    "Pillow>=9.1.0",  # Preview frame decoding and mirroring
]

setup(
    name="tethercam",
    version="0.1.0",
    author="tethercam Development Team",
    description="Tethered control of gphoto2 cameras: enumeration, live preview, capture and parameters",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests", "tests.*", "examples"]),
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Operating System :: POSIX :: Linux",
        "Operating System :: MacOS",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Multimedia :: Graphics :: Capture :: Digital Camera",
        "Topic :: Software Development :: Libraries :: Python Modules",
    ],
    keywords="camera gphoto2 dslr tethering preview capture",
    python_requires=">=3.8",
    install_requires=install_requires,
    extras_require=get_extras(),
    entry_points={
        "console_scripts": [
            "tethercam=tethercam.cli:main",
        ],
    },
    # Include package data
    package_data={
        "tethercam": ["py.typed"],
    },
    zip_safe=False,
)
