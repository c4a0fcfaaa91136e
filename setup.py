from setuptools import setup, find_packages

setup(
    name="coolify-migration",
    version="0.1.0",
    description="Back up a Coolify instance and move it to a new server over SSH",
    long_description=open("README.md").read(),
    long_description_content_type="text/markdown",
    package_dir={"": "src"},
    packages=find_packages(where="src"),
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: MIT License",
        "Operating System :: POSIX :: Linux",
    ],
    python_requires=">=3.8",
    install_requires=[
        "docker",
        "requests",
        "paramiko",
        "pyyaml>=6.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0.0",
        ],
    },
    entry_points={
        'console_scripts': [
            'coolify-migration=coolify_migration.main:main',
        ],
    },
)
