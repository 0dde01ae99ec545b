from setuptools import setup, find_packages

setup(
    name="algepi",
    version="0.1.0",
    packages=find_packages(include=["algepi", "algepi.*"]),
    package_data={"algepi.examples": ["params/*.yml"]},
    url="",
    license="",
    author="",
    author_email="",
    python_requires=">=3.8",
    install_requires=[
        "numpy>=1.20",
        "scipy>=1.6",
        "numba>=0.53",
        "networkx>=2.5",
        "matplotlib>=3.3",
        "graphviz>=0.16",
        "PyYAML>=5.4",
        "pydantic>=2.0",
        "click>=7.1",
    ],
    extras_require={"test": ["pytest>=6.2"]},
    entry_points={"console_scripts": ["algepi=algepi.cli:cli"]},
    description="Compositional epidemiological models with ODE, SDE and jump process simulation",
)
