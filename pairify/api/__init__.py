"""
Generic framework for authorising and sending requests to a remote HTTP API.
"""
from .authorise import APIAuthoriser
from .request import RequestHandler
