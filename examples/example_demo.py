"""
Example: Building and solving a MILP with knorpelsolve

This example demonstrates how to build a problem from sources in the
expression language and from the algebra combinators.

Problem:
    maximize    10*(a - b/5) - b
    subject to  a + 2 <= b
                1 + a >= 4 - b
                a <= 1,  2 <= b <= 4
"""

import knorpelsolve
from knorpelsolve import exp, sub


def main():
    print()
    print("=" * 70)
    print("knorpelsolve Example: Expression Language - Python")
    print("=" * 70)
    print()

    # Step 1: Create problem and variables
    p = knorpelsolve.Problem()
    a = p.variable("a", max=1)
    b = p.variable("b", min=2, max=4)

    # Step 2: Add constraints, once as a source and once as a triple
    p.constraint("{} + 2 <= {}", a, b)
    p.constraint(exp("1 + {}", a), ">=", sub(4, b))

    for constraint in p.constraints:
        print(f"  {constraint}")
    print()

    # Step 3: Solve
    objective = exp("10 * ({} - {} / 5) - {}", a, b, b)
    print(f"Objective: {objective}")
    solution = p.maximize(objective)

    # Step 4: Display results
    print()
    print("=" * 70)
    print("Solution Summary")
    print("=" * 70)
    print(f"Status: {solution.status}")
    print(f"Objective: {solution.objective}")
    for name, value in solution.values.items():
        print(f"  {name} = {value:.6f}")
    print("=" * 70)
    print()


if __name__ == "__main__":
    main()
