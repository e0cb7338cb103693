"""
Core Inference Layers

classifier     Naive Bayes text classification
similarity     weighted k-nearest-neighbour matching
decision_tree  explainable clinical rule trees
"""
