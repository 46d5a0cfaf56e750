#!/usr/bin/env python
# Software License Agreement (BSD License)
#
# Copyright (c) 2010, Willow Garage, Inc.
# All rights reserved.
#
# Redistribution and use in source and binary forms, with or without
# modification, are permitted provided that the following conditions
# are met:
#
#  * Redistributions of source code must retain the above copyright
#    notice, this list of conditions and the following disclaimer.
#  * Redistributions in binary form must reproduce the above
#    copyright notice, this list of conditions and the following
#    disclaimer in the documentation and/or other materials provided
#    with the distribution.
#  * Neither the name of Willow Garage, Inc. nor the names of its
#    contributors may be used to endorse or promote products derived
#    from this software without specific prior written permission.
#
# THIS SOFTWARE IS PROVIDED BY THE COPYRIGHT HOLDERS AND CONTRIBUTORS
# 'AS IS' AND ANY EXPRESS OR IMPLIED WARRANTIES, INCLUDING, BUT NOT
# LIMITED TO, THE IMPLIED WARRANTIES OF MERCHANTABILITY AND FITNESS
# FOR A PARTICULAR PURPOSE ARE DISCLAIMED. IN NO EVENT SHALL THE
# COPYRIGHT OWNER OR CONTRIBUTORS BE LIABLE FOR ANY DIRECT, INDIRECT,
# INCIDENTAL, SPECIAL, EXEMPLARY, OR CONSEQUENTIAL DAMAGES (INCLUDING,
# BUT NOT LIMITED TO, PROCUREMENT OF SUBSTITUTE GOODS OR SERVICES;
# LOSS OF USE, DATA, OR PROFITS; OR BUSINESS INTERRUPTION) HOWEVER
# CAUSED AND ON ANY THEORY OF LIABILITY, WHETHER IN CONTRACT, STRICT
# LIABILITY, OR TORT (INCLUDING NEGLIGENCE OR OTHERWISE) ARISING IN
# ANY WAY OUT OF THE USE OF THIS SOFTWARE, EVEN IF ADVISED OF THE
# POSSIBILITY OF SUCH DAMAGE.
#

'''
.. module:: jenkins_graph.exceptions
    :platform: Unix, Windows
    :synopsis: Exceptions raised by jenkins_graph
'''


class JenkinsException(Exception):
    '''General exception type for jenkins-API-related failures.'''

    def __init__(self, msg, url=None):
        super(JenkinsException, self).__init__(msg)
        self.url = url


class TransportException(JenkinsException):
    '''The request never got an HTTP response.'''

    def __init__(self, msg, url=None, cause=None):
        super(TransportException, self).__init__(msg, url)
        self.cause = cause


class TimeoutException(TransportException):
    '''A special exception to call out in the case of a socket timeout.'''


class JenkinsAPIException(JenkinsException):
    '''The server answered, but not with what was asked for.

    Raised for non-2xx statuses and for bodies that do not decode as the
    expected JSON object or XML document.
    '''

    def __init__(self, msg, url=None, status_code=None):
        super(JenkinsAPIException, self).__init__(msg, url)
        self.status_code = status_code


class JobExistsException(JenkinsException):
    '''Job creation was refused, which Jenkins does for existing names.'''

    def __init__(self, msg, url=None, status_code=None):
        super(JobExistsException, self).__init__(msg, url)
        self.status_code = status_code


class CrumbException(JenkinsException):
    '''No usable anti-CSRF crumb could be obtained.'''
