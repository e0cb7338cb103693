"""
careinsight: Clinical Inference Engine

Naive Bayes text classification, weighted KNN matching and explainable rule
trees for ward workflows.
"""
__version__ = "0.1.0"
