"""Phase orchestration scripts for the bicycle count dataset.

 - build_dataset.py: load, merge, clean and normalize the source tables, then
   optionally reduce features and fit models
"""
