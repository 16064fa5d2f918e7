from setuptools import setup, find_packages
setup(
    name='mcint',
    version='0.1',
    package_dir={'': 'src'},
    packages=find_packages('src'),
    install_requires=[
        'numpy>=1.17',
        'matplotlib>=2.1.2',
        'scipy>=1.0',
    ],
    extras_require={
        'test': ['pytest'],
    },
    python_requires='>=3.6',
)
