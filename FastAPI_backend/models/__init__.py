"""Request and response models"""
