from setuptools import setup, find_packages

setup(
    name="fluxvariability",
    version="0.1",
    description="Flux variability analysis with loop exclusion for the COBRApy framework",
    long_description=("Flux variability analysis for the COBRApy framework with several methods for the exclusion "
                      "of thermodynamically infeasible loops, secondary objectives for representative flux vectors "
                      "and parallel computation"),
    long_description_content_type="text/plain",
    license="Apache License 2.0",
    python_requires=">=3.7",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=["cobra", "optlang", "swiglpk", "numpy", "scipy", "pandas"],
    extras_require={
        "gurobi": ["gurobipy"],
        "test": ["pytest"],
    },
    classifiers=[
        "Intended Audience :: Science/Research", "Development Status :: 3 - Alpha", "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10", "Programming Language :: Python :: 3.11", "Programming Language :: Python :: 3.12",
        "Natural Language :: English", "Operating System :: OS Independent", "Topic :: Scientific/Engineering :: Bio-Informatics"
    ],
    keywords=["metabolism", "constraint-based", "flux variability", "loopless"],
    zip_safe=False,
)
