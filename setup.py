from setuptools import setup
import os

PROJECT_ROOT, _ = os.path.split(__file__)
PROJECT_AUTHORS = 'python-jenkins-graph developers'
REVISION = '0.1.0'
PROJECT_NAME = 'python-jenkins-graph'
SHORT_DESCRIPTION = (
  'Python Jenkins Graph is a client for the Jenkins management API which presents jobs, builds, views, nodes, '
  'executors and the build queue as lazily loaded, navigable objects, with anti-CSRF crumb support.'
)

try:
    DESCRIPTION = open(os.path.join(PROJECT_ROOT, 'README.rst')).read()
except IOError:
    DESCRIPTION = SHORT_DESCRIPTION


def read_requirements(name):
    with open(os.path.join(PROJECT_ROOT, name)) as f:
        return [line.strip() for line in f if line.strip()]


setup(
    name=PROJECT_NAME.lower(),
    version=REVISION,
    author=PROJECT_AUTHORS,
    packages=[
        'jenkins_graph'],
    zip_safe=True,
    include_package_data=False,
    install_requires=read_requirements('requirements.txt'),
    extras_require={'test': read_requirements('test-requirements.txt')},
    python_requires='>=3.6',
    description=SHORT_DESCRIPTION,
    long_description=DESCRIPTION,
    license='BSD',
    classifiers=[
        'Topic :: Utilities',
        'Intended Audience :: Developers',
        'Intended Audience :: Information Technology',
        'Intended Audience :: System Administrators',
        'Environment :: Console',
        'License :: OSI Approved :: BSD License',
        'Operating System :: OS Independent',
        'Programming Language :: Python',
        'Programming Language :: Python :: 3',
    ],
)
