"""
Run with: python -m imagemeasure
"""
from imagemeasure.main import main

if __name__ == "__main__":
    main()
