from setuptools import setup

setup(name='csvgrid',
      version='0.1.0',
      description='In-memory, mutable CSV documents with quote-aware parsing and saving',
      packages=['csvgrid'],
      python_requires='>=3.8',
      install_requires=['numpy'],
      extras_require={
          'test': ['pytest'],
          'bench': ['pandas', 'polars'],
      },
      zip_safe=False)
