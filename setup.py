from setuptools import setup, find_packages

setup(
    name="PaintMixer",
    version="0.1.0",
    description="Spectral paint mixing and color matching with the Kubelka-Munk model",
    packages=find_packages(exclude=["tests", "tests.*"]),
    include_package_data=True,
    python_requires=">=3.10",
    install_requires=[
        "colour-science>=0.4.4",
        "numpy>=2.0.0",
        "pandas>=2.2.3",
        "scipy>=1.14.1",
        "tqdm>=4.67.0",
    ],  # Core dependencies
    extras_require={
        "test": ["pytest>=8.0"],
    },
)
