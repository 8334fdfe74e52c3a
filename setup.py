from setuptools import setup, find_packages

setup(
    name="electron_webrtc_py",
    version="0.1.0",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    install_requires=[
        "aiortc>=1.9.0,<2.0.0",
        "pyee>=12.0.0,<14.0.0",
        "aiohttp>=3.7.4,<4.0.0",
    ],
    extras_require={
        "test": ["pytest"],
    },
    description="Drive WebRTC peer connections hosted in a remote browser environment from asyncio",
    long_description=open("README.md").read(),
    long_description_content_type="text/markdown",
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
    ],
    python_requires=">=3.8",
    include_package_data=True,
    license="MIT",
    keywords="webrtc electron rtcpeerconnection datachannel",
    tests_require=['pytest'],
)
