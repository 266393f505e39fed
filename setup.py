import setuptools

VERSION = '0.1.0'

setup_params = dict(
    name='sturdy',
    version=VERSION,
    keywords='requests http client retry backoff cache',
    packages=setuptools.find_packages(include=['sturdy', 'sturdy.*']),
    package_data={'': ['LICENSE.txt']},
    package_dir={'sturdy': 'sturdy'},
    include_package_data=True,
    description='A JSON HTTP client for requests with retries, caching and request de-duplication',
    long_description=open('README.md').read(),
    long_description_content_type='text/markdown',
    install_requires=['requests>=2.31'],
    extras_require={
        'dev': [
            'mockito>=1.5',
            'pytest>=7.4',
            'pytest-cov>=4.1',
            'ddt>=1.7',
        ]
    },
    entry_points={},
    python_requires='>=3.8',
    classifiers=[
        'Development Status :: 3 - Alpha',
        'Environment :: Web Environment',
        'Intended Audience :: Developers',
        'License :: OSI Approved :: BSD License',
        'Natural Language :: English',
        'Operating System :: OS Independent',

        'Programming Language :: Python',
        'Programming Language :: Python :: 3',
        'Programming Language :: Python :: 3 :: Only',
    ],
)


if __name__ == '__main__':
    setuptools.setup(**setup_params)
