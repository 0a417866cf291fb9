import os
import sys

sys.path.append(os.path.join(os.path.dirname(os.path.abspath(__file__)), "..", "src"))
from domain_survivor.classifier import similarity

catch_all = b"<html><body><h1>404 Not Found</h1></body></html>"
assert similarity(catch_all, catch_all) == 1.0, "identical bodies must score 1.0"
assert similarity(catch_all, b'{"status":"ok","items":[1,2,3]}') < 0.9, "unrelated bodies scored too high"
print("baseline similarity smoke test passed")
