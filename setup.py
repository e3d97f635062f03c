from setuptools import setup

from os import path
this_directory = path.abspath(path.dirname(__file__))
with open(path.join(this_directory, 'README.md'), encoding='utf-8') as f:
    long_description = f.read()

setup(
    name='unhqx',
    long_description=long_description,
    long_description_content_type='text/markdown',
    version='0.1',
    description='Decoder for BinHex 4.0 (.hqx) Macintosh files',
    classifiers=[
        'Programming Language :: Python :: 3 :: Only',
        'Operating System :: OS Independent',
        'Intended Audience :: Developers',
        'Topic :: System :: Archiving',
        'License :: OSI Approved :: MIT License',
    ],
    python_requires='>=3.7',
    zip_safe=True,
    packages=['unhqx'],
    install_requires=['macresources'],
    extras_require={'test': ['pytest']},
    entry_points=dict(console_scripts=['unhqx = unhqx.__main__:main']),
)
