# This file is part of Pergola.
# Licensed under MIT License.
